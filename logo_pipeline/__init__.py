"""
Batch logo personalization for product imagery.

Modules:
- config: environment-driven settings and filesystem layout
- records: client rows loaded from CSV
- assets: product, mask and pass-through image discovery
- fetcher: logo download and staging
- compositor: OpenAI image edit adapter
- messaging: email templating and SMTP delivery
- core: per-client composition and the batch driver
"""

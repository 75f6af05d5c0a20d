"""
Exception taxonomy for the logo pipeline.

Fatal errors stop the run before any client is processed. Client errors are
attributed to a single client by the batch driver and the run continues.
"""


class PipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class FatalError(PipelineError):
    pass


class ConfigurationError(FatalError):
    """A required credential or setting is missing or invalid."""


class CatalogEmptyError(FatalError):
    """No base product images were found."""


class ClientError(PipelineError):
    pass


class InvalidRecordError(ClientError):
    """A client row is missing a required field."""


class DownloadError(ClientError):
    """The client's logo could not be fetched."""


class CompositionError(ClientError):
    """The compositor failed or returned no usable image."""


class DeliveryError(ClientError):
    """The mail transport rejected or failed to send a message."""

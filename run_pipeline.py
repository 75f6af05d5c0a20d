import argparse
import csv
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from logo_pipeline.assets import AssetCatalog
from logo_pipeline.compositor import OpenAICompositor
from logo_pipeline.config import QUALITY_TIERS, PipelinePaths, Settings
from logo_pipeline.core import BatchDriver, CompositionOrchestrator
from logo_pipeline.errors import FatalError
from logo_pipeline.fetcher import LogoFetcher
from logo_pipeline.messaging import Notifier, SmtpMailer
from logo_pipeline.records import load_clients

logger = logging.getLogger("logo_pipeline")

DEFAULTS = PipelinePaths()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Composite client logos onto product images and email the results."
    )
    parser.add_argument(
        "--clients",
        type=Path,
        default=DEFAULTS.clients_csv,
        help="CSV file with Name, Email, ContactName and Logo URL columns.",
    )
    parser.add_argument(
        "--products-dir",
        type=Path,
        default=DEFAULTS.products_dir,
        help="Folder containing the base product images.",
    )
    parser.add_argument(
        "--masks-dir",
        type=Path,
        default=DEFAULTS.masks_dir,
        help="Folder containing optional masks, matched to products by file stem.",
    )
    parser.add_argument(
        "--passthrough-dir",
        type=Path,
        default=DEFAULTS.passthrough_dir,
        help="Folder of images attached to every email without conversion.",
    )
    parser.add_argument(
        "--staging-dir",
        type=Path,
        default=DEFAULTS.staging_dir,
        help="Folder where downloaded logos are staged while a client is processed.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULTS.output_dir,
        help="Folder where generated images are written.",
    )
    parser.add_argument(
        "--email-template",
        type=Path,
        default=None,
        help=(
            "Text file used as the email body "
            "({{client_name}}, {{client_company_name}}, {{sender_name}})."
        ),
    )
    parser.add_argument(
        "--quality",
        choices=QUALITY_TIERS,
        default=None,
        help="Compositor quality tier (overrides IMAGE_QUALITY).",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    return parser.parse_args(argv)


def configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
        force=True,
    )


def build_paths(args: argparse.Namespace) -> PipelinePaths:
    return PipelinePaths(
        clients_csv=args.clients,
        products_dir=args.products_dir,
        masks_dir=args.masks_dir,
        passthrough_dir=args.passthrough_dir,
        staging_dir=args.staging_dir,
        output_dir=args.output_dir,
    )


def main(argv: Optional[List[str]] = None) -> int:
    # Load environment variables from a local .env file if present
    # (e.g. OPENAI_API_KEY=sk-..., EMAIL_USER=..., EMAIL_PASSWORD=...).
    load_dotenv()

    args = parse_args(argv)
    configure_logging(args.log_level)
    paths = build_paths(args)

    try:
        settings = Settings.from_env()
        catalog = AssetCatalog.scan(
            paths.products_dir,
            masks_dir=paths.masks_dir,
            passthrough_dir=paths.passthrough_dir,
        )
        clients = load_clients(paths.clients_csv)
        body_template = (
            args.email_template.read_text(encoding="utf-8") if args.email_template else None
        )
    except (FatalError, OSError, ValueError, csv.Error) as exc:
        logger.error("Error: %s", exc)
        return 1

    logger.info(
        "📁 Found %d product image(s), %d mask(s), %d pass-through image(s)",
        len(catalog.products),
        len(catalog.masks),
        len(catalog.passthrough),
    )

    orchestrator = CompositionOrchestrator(
        compositor=OpenAICompositor.from_settings(settings),
        fetcher=LogoFetcher(timeout=settings.request_timeout),
        staging_dir=paths.staging_dir,
        output_dir=paths.output_dir,
        quality=args.quality or settings.quality,
    )
    mailer = SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.email_user,
        password=settings.email_password,
        use_starttls=settings.smtp_starttls,
        timeout=settings.request_timeout,
    )
    notifier = Notifier(
        mailer=mailer,
        from_name=settings.email_from_name,
        from_address=settings.email_user,
        subject=settings.email_subject,
        body_template=body_template,
    )

    BatchDriver(orchestrator=orchestrator, notifier=notifier).run(clients, catalog)
    return 0


if __name__ == "__main__":
    sys.exit(main())

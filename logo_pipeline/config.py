import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError

REQUIRED_ENV_VARS = ("OPENAI_API_KEY", "EMAIL_USER", "EMAIL_PASSWORD")
QUALITY_TIERS = ("low", "high")

DEFAULT_FROM_NAME = "Your Company Name"
DEFAULT_SUBJECT = "Your Customized Product Designs"
FALSY_VALUES = {"0", "false", "no", "off"}


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in FALSY_VALUES


@dataclass(frozen=True)
class Settings:
    openai_api_key: str
    email_user: str
    email_password: str
    email_from_name: str = DEFAULT_FROM_NAME
    email_subject: str = DEFAULT_SUBJECT
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_starttls: bool = True
    openai_model: str = "gpt-image-1"
    quality: str = "low"
    request_timeout: float = 60.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Call `dotenv.load_dotenv()` first if a local .env file should be
        honoured. Every missing credential is reported in one error.
        """
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_ENV_VARS if not env.get(name, "").strip()]
        if missing:
            raise ConfigurationError(
                "Missing required environment variables: "
                + ", ".join(missing)
                + ". Please check your .env file."
            )

        quality = env.get("IMAGE_QUALITY", "low").strip().lower()
        if quality not in QUALITY_TIERS:
            raise ConfigurationError(
                f"IMAGE_QUALITY must be one of {', '.join(QUALITY_TIERS)}, got {quality!r}"
            )

        try:
            smtp_port = int(env.get("SMTP_PORT", "").strip() or "587")
            request_timeout = float(env.get("REQUEST_TIMEOUT", "").strip() or "60")
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc
        if request_timeout <= 0:
            raise ConfigurationError("REQUEST_TIMEOUT must be positive")

        return cls(
            openai_api_key=env["OPENAI_API_KEY"].strip(),
            email_user=env["EMAIL_USER"].strip(),
            email_password=env["EMAIL_PASSWORD"],
            email_from_name=env.get("EMAIL_FROM_NAME") or DEFAULT_FROM_NAME,
            email_subject=env.get("EMAIL_SUBJECT") or DEFAULT_SUBJECT,
            smtp_host=env.get("SMTP_HOST") or "smtp.gmail.com",
            smtp_port=smtp_port,
            smtp_starttls=_env_flag(env.get("SMTP_STARTTLS"), default=True),
            openai_model=env.get("OPENAI_IMAGE_MODEL") or "gpt-image-1",
            quality=quality,
            request_timeout=request_timeout,
        )


@dataclass(frozen=True)
class PipelinePaths:
    """Filesystem layout of a batch run."""

    clients_csv: Path = Path("clients.csv")
    products_dir: Path = Path("products")
    masks_dir: Path = Path("products_masks")
    passthrough_dir: Path = Path("product_images_no_conversion")
    staging_dir: Path = Path("downloaded_images")
    output_dir: Path = Path("generated_images")

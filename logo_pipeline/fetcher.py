import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import requests

from .errors import DownloadError

logger = logging.getLogger(__name__)


class LogoFetcher:
    """
    Downloads client logos and stages them as local files.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, url: str, destination: Path) -> Path:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DownloadError(f"Failed to download {url}: {exc}") from exc

        if not response.content:
            raise DownloadError(f"Download of {url} returned an empty body")

        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.content)
        logger.debug("Staged %d bytes from %s at %s", len(response.content), url, destination)
        return destination

    @contextmanager
    def staged(self, url: str, destination: Path) -> Iterator[Path]:
        """
        Fetch `url` into `destination` and remove the file when the block exits,
        whether it exits normally or by an exception.
        """
        try:
            yield self.fetch(url, destination)
        finally:
            # A failed fetch may still have left a partial file behind.
            destination.unlink(missing_ok=True)

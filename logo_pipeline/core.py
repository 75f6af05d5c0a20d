import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .assets import AssetCatalog, match_mask
from .compositor import CompositionRequest, build_instruction
from .fetcher import LogoFetcher
from .messaging import Notifier
from .records import ClientRecord

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|\x00]')


@dataclass
class GeneratedArtifact:
    client_name: str
    product: Path
    index: int
    path: Path
    mask: Optional[Path] = None


@dataclass
class BatchReport:
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    notified: List[str] = field(default_factory=list)
    not_notified: List[str] = field(default_factory=list)
    delivery_failed: List[str] = field(default_factory=list)
    artifacts: Dict[str, List[Path]] = field(default_factory=dict)

    def summary(self) -> str:
        return (
            f"{len(self.succeeded)} client(s) processed, {len(self.failed)} failed, "
            f"{len(self.notified)} emailed, {len(self.delivery_failed)} email failure(s), "
            f"{len(self.not_notified)} without email"
        )


class CompositionOrchestrator:
    """
    Composites one client's logo onto every product image:
    - stage the logo under staging_dir/{slug}_logo.png
    - for each product, in catalog order:
        * resolve its mask, if any
        * ask the compositor for a new image
        * write it to output_dir/{slug}_{product}_{index}.png
    - remove the staged logo on every exit path
    """

    def __init__(
        self,
        compositor,
        fetcher: LogoFetcher,
        staging_dir: Path,
        output_dir: Path,
        quality: str = "low",
    ) -> None:
        self.compositor = compositor
        self.fetcher = fetcher
        self.staging_dir = staging_dir
        self.output_dir = output_dir
        self.quality = quality

    def process_client(
        self,
        client: ClientRecord,
        products: Sequence[Path],
        masks: Sequence[Path],
        slug: Optional[str] = None,
    ) -> List[GeneratedArtifact]:
        slug = slug or slugify_client_name(client.name)
        logo_path = self.staging_dir / f"{slug}_logo.png"
        self.output_dir.mkdir(parents=True, exist_ok=True)

        artifacts: List[GeneratedArtifact] = []
        with self.fetcher.staged(client.logo_url, logo_path) as staged_logo:
            for index, product in enumerate(products, start=1):
                mask = match_mask(product, masks)
                request = CompositionRequest(
                    base_image=product,
                    overlay_image=staged_logo,
                    mask=mask,
                    instruction=build_instruction(has_mask=mask is not None),
                    quality=self.quality,
                )
                mask_note = f" with mask {mask.name}" if mask else ""
                logger.info("🎨 Compositing logo onto %s%s for %s", product.name, mask_note, client.name)
                image_bytes = self.compositor.compose(request)

                output_path = self.output_dir / artifact_filename(slug, product, index)
                output_path.write_bytes(image_bytes)
                artifacts.append(
                    GeneratedArtifact(
                        client_name=client.name,
                        product=product,
                        index=index,
                        path=output_path,
                        mask=mask,
                    )
                )

        return artifacts


class BatchDriver:
    """
    Runs the orchestrator for every client and emails the results.

    A failure for one client is logged against that client's name and the
    batch moves on to the next client.
    """

    def __init__(
        self,
        orchestrator: CompositionOrchestrator,
        notifier: Notifier,
    ) -> None:
        self.orchestrator = orchestrator
        self.notifier = notifier

    def run(self, clients: Sequence[ClientRecord], catalog: AssetCatalog) -> BatchReport:
        report = BatchReport()
        claimed_slugs: Dict[str, str] = {}

        for client in clients:
            logger.info("Processing client: %s", client.name)
            slug = _claim_slug(client.name, claimed_slugs)

            try:
                artifacts = self.orchestrator.process_client(
                    client,
                    catalog.products,
                    catalog.masks,
                    slug=slug,
                )
            except Exception as exc:
                logger.error("Error processing %s: %s", client.name, exc)
                report.failed[client.name] = str(exc)
                continue

            paths = [artifact.path for artifact in artifacts]
            report.succeeded.append(client.name)
            report.artifacts[client.name] = paths
            logger.info(
                "Successfully processed %s: %s",
                client.name,
                ", ".join(str(p) for p in paths),
            )

            if not client.email:
                logger.warning("No email address provided for %s", client.name)
                report.not_notified.append(client.name)
                continue

            try:
                delivered = self.notifier.notify(client, paths + list(catalog.passthrough))
            except Exception as exc:
                logger.error("Error emailing %s: %s", client.name, exc)
                delivered = False

            if delivered:
                report.notified.append(client.name)
            else:
                report.delivery_failed.append(client.name)

        logger.info("Batch finished: %s", report.summary())
        return report


def slugify_client_name(name: str) -> str:
    """
    Make a client name safe to use in a file name.

    Each whitespace character becomes "_" and characters that are not allowed
    in paths become "-". Runs are not collapsed, so "Acme Co" and "Acme  Co"
    produce different slugs.
    """
    slug = "".join("_" if ch.isspace() else ch for ch in name.strip())
    slug = _UNSAFE_FILENAME_CHARS.sub("-", slug)
    if slug in ("", ".", ".."):
        return "client"
    return slug


def artifact_filename(client_slug: str, product_path: Path, index: int) -> str:
    product_suffix = "".join("_" if ch.isspace() else ch for ch in product_path.stem)
    return f"{client_slug}_{product_suffix}_{index}.png"


def _claim_slug(name: str, claimed: Dict[str, str]) -> str:
    """
    Reserve a slug for `name` that no other client in this run holds.

    The first client keeps the plain slug; later clients with a colliding
    slug get "-2", "-3", ... appended. Slugs are compared case-insensitively.
    """
    base = slugify_client_name(name)
    slug = base
    counter = 2
    while slug.casefold() in claimed and claimed[slug.casefold()] != name:
        slug = f"{base}-{counter}"
        counter += 1
    claimed[slug.casefold()] = name
    return slug

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import CatalogEmptyError

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}


def list_assets(directory: Path) -> List[Path]:
    """
    Return the raster images found directly inside `directory`.

    Files are returned in directory-listing order. The order is whatever the
    filesystem reports and is not sorted. A missing directory yields an empty
    list.
    """
    if not directory.is_dir():
        return []

    return [
        path
        for path in directory.iterdir()
        if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS
    ]


def match_mask(product_path: Path, mask_paths: Sequence[Path]) -> Optional[Path]:
    """
    Find the mask belonging to a product image.

    The first mask whose file name contains the product's stem wins; parent
    directories are not considered. Containment is a plain substring test, so
    the stem "mug" also matches "travel_mug_mask.png"; callers control
    precedence through the order of `mask_paths`.
    """
    stem = product_path.stem
    for mask_path in mask_paths:
        if stem in mask_path.name:
            return mask_path
    return None


@dataclass
class AssetCatalog:
    products: List[Path]
    masks: List[Path] = field(default_factory=list)
    passthrough: List[Path] = field(default_factory=list)

    @classmethod
    def scan(
        cls,
        products_dir: Path,
        masks_dir: Optional[Path] = None,
        passthrough_dir: Optional[Path] = None,
    ) -> "AssetCatalog":
        products = list_assets(products_dir)
        if not products:
            raise CatalogEmptyError(f"No product images found in {products_dir}")

        return cls(
            products=products,
            masks=list_assets(masks_dir) if masks_dir else [],
            passthrough=list_assets(passthrough_dir) if passthrough_dir else [],
        )

    def mask_for(self, product_path: Path) -> Optional[Path]:
        return match_mask(product_path, self.masks)

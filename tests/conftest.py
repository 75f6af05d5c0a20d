"""Shared pytest fixtures for unit and integration tests.

This module provides:
- Temporary directory fixtures for file I/O testing
- An on-disk asset tree (products, masks, pass-through images)
- Test doubles for the compositor, logo fetcher and mail transport
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Dict, Generator, List

import pytest

from logo_pipeline.records import ClientRecord
from tests.fakes import FakeCompositor, FakeFetcher, FakeMailer, make_png_bytes


@pytest.fixture
def tmp_test_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after each test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def asset_tree(tmp_test_dir: Path) -> Dict[str, Path]:
    """Create the default folder layout with two products, one mask and one
    pass-through image.

    Returns
    -------
    Dict[str, Path]
        Keys: 'root', 'products', 'masks', 'passthrough', 'staging', 'output'
    """
    layout = {
        "root": tmp_test_dir,
        "products": tmp_test_dir / "products",
        "masks": tmp_test_dir / "products_masks",
        "passthrough": tmp_test_dir / "product_images_no_conversion",
        "staging": tmp_test_dir / "downloaded_images",
        "output": tmp_test_dir / "generated_images",
    }
    for key in ("products", "masks", "passthrough"):
        layout[key].mkdir()

    (layout["products"] / "mug.png").write_bytes(make_png_bytes("white"))
    (layout["products"] / "lid.jpg").write_bytes(make_png_bytes("gray"))
    (layout["masks"] / "mug_mask.png").write_bytes(make_png_bytes("black"))
    (layout["passthrough"] / "catalog_page.png").write_bytes(make_png_bytes("green"))
    return layout


@pytest.fixture
def clients() -> List[ClientRecord]:
    return [
        ClientRecord(
            name="Acme Co",
            logo_url="https://logos.test/acme.png",
            email="buyer@acme.test",
            contact_name="Jane",
        ),
        ClientRecord(
            name="Globex",
            logo_url="https://logos.test/globex.png",
            email="ops@globex.test",
        ),
        ClientRecord(
            name="Initech",
            logo_url="https://logos.test/initech.png",
            email="bill@initech.test",
            contact_name="Bill",
        ),
    ]


@pytest.fixture
def fake_compositor() -> FakeCompositor:
    return FakeCompositor()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def fake_mailer() -> FakeMailer:
    return FakeMailer()

"""Shared pytest fixtures for photo_export tests.

This module provides an in-memory asset catalog, in-memory resource
handles, a synchronous notification dispatcher, and an isolated
configuration so tests never read or write the user's real files.

Example:
    def test_export(sample_catalog, destination, sync_dispatch):
        engine = ExportEngine(sample_catalog, dispatch=sync_dispatch)
        summary = engine.run_all_assets(destination).wait()
        assert summary.processed_count == summary.total_count
"""

from __future__ import annotations

import errno
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from photo_export.catalog.base import AssetCatalog, CatalogError
from photo_export.core.config import Config
from photo_export.core.types import Album, Asset, AssetResource, ResourceKind

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


class MemoryHandle:
    """Resource handle that writes bytes held in memory.

    Attributes:
        data: Bytes written to the destination.
        fail_with: If set, write half of ``data`` and then raise an OSError
            with this message.
        before_write: Called before each write, e.g. to request cancellation.
        writes: Destinations written so far.
    """

    def __init__(
        self,
        data: bytes = b"image-bytes",
        *,
        fail_with: str | None = None,
        before_write: Callable[[], None] | None = None,
    ) -> None:
        self.data = data
        self.fail_with = fail_with
        self.before_write = before_write
        self.writes: list[Path] = []
        self.network_flags: list[bool] = []

    def write_to(self, destination: Path, *, allow_network_access: bool = True) -> None:
        if self.before_write is not None:
            self.before_write()
        self.network_flags.append(allow_network_access)

        with open(destination, "xb") as f:
            if self.fail_with is not None:
                f.write(self.data[: len(self.data) // 2])
                raise OSError(errno.EIO, self.fail_with)
            f.write(self.data)
        self.writes.append(destination)


def make_resource(
    filename: str,
    kind: ResourceKind = ResourceKind.PHOTO,
    data: bytes | None = None,
    **handle_kwargs: object,
) -> AssetResource:
    """Build a resource backed by a :class:`MemoryHandle`."""
    handle = MemoryHandle(data if data is not None else filename.encode(), **handle_kwargs)  # type: ignore[arg-type]
    return AssetResource(kind=kind, original_filename=filename, handle=handle)


class FakeCatalog(AssetCatalog):
    """In-memory catalog.

    Albums and assets keep insertion order. Failures can be injected per
    album or per asset.
    """

    def __init__(self) -> None:
        super().__init__()
        self.albums: dict[str, Album] = {}
        self.album_assets: dict[str, list[Asset]] = {}
        self.assets: dict[str, Asset] = {}
        self.resources: dict[str, list[AssetResource]] = {}
        self.failing_albums: set[str] = set()
        self.failing_resources: set[str] = set()
        self.failing_memberships: set[str] = set()
        self.fail_all_assets = False
        self.fail_list_albums = False
        self.open_error: Exception | None = None

    def add_album(self, album_id: str, name: str | None, *, is_smart: bool = False) -> Album:
        album = Album(album_id=album_id, display_name=name, is_smart=is_smart)
        self.albums[album_id] = album
        self.album_assets[album_id] = []
        return album

    def add_asset(
        self,
        asset_id: str,
        resources: list[AssetResource] | None = None,
        albums: list[Album] | None = None,
    ) -> Asset:
        filename = resources[0].original_filename if resources else ""
        asset = Asset(asset_id=asset_id, filename=filename)
        self.assets[asset_id] = asset
        self.resources[asset_id] = list(resources or [])
        for album in albums or []:
            self.album_assets[album.album_id].append(asset)
        return asset

    def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error

    def list_albums(self) -> list[Album]:
        if self.fail_list_albums:
            raise CatalogError("library unavailable")
        return list(self.albums.values())

    def list_assets(self, album: Album) -> list[Asset]:
        if album.album_id in self.failing_albums:
            raise CatalogError("album unavailable")
        return list(self.album_assets.get(album.album_id, []))

    def list_all_assets(self) -> list[Asset]:
        if self.fail_all_assets:
            raise CatalogError("library unavailable")
        return list(self.assets.values())

    def album_memberships_of(self, asset: Asset, *, user_only: bool = True) -> list[Album]:
        if asset.asset_id in self.failing_memberships:
            raise CatalogError("memberships unavailable")
        return [
            self.albums[album_id]
            for album_id, assets in self.album_assets.items()
            if asset in assets and not (user_only and self.albums[album_id].is_smart)
        ]

    def resources_of(self, asset: Asset) -> list[AssetResource]:
        if asset.asset_id in self.failing_resources:
            raise CatalogError("resources unavailable")
        return list(self.resources.get(asset.asset_id, []))


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point the config file and log directory at a temporary location."""
    monkeypatch.setattr("photo_export.core.config.DEFAULT_CONFIG_FILE", tmp_path / "config" / "config.json")
    monkeypatch.setattr("photo_export.core.logger._log_dir", tmp_path / "logs")
    monkeypatch.setenv("PHOTO_EXPORT_LOGGING__FILE_OUTPUT", "false")
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test files."""
    return tmp_path


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Provide an existing, empty destination root."""
    root = tmp_path / "export"
    root.mkdir()
    return root


@pytest.fixture
def sync_dispatch() -> Callable[[Callable[[], None]], None]:
    """Dispatcher that delivers notifications inline on the worker thread."""

    def dispatch(fn: Callable[[], None]) -> None:
        fn()

    return dispatch


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    """Provide an empty in-memory catalog."""
    return FakeCatalog()


@pytest.fixture
def sample_catalog() -> FakeCatalog:
    """Provide a small library.

    Layout:
        Trip:      a1, a2
        Family:    a2, a3
        (unnamed): a4
        Favorites (smart): a1
        a5 belongs to no album.
    """
    catalog = FakeCatalog()
    favorites = catalog.add_album("smart:favorites", "Favorites", is_smart=True)
    trip = catalog.add_album("trip", "Trip")
    family = catalog.add_album("family", "Family")
    unnamed = catalog.add_album("unnamed", None)

    catalog.add_asset("a1", [make_resource("IMG_0001.HEIC")], [favorites, trip])
    catalog.add_asset("a2", [make_resource("IMG_0002.HEIC")], [trip, family])
    catalog.add_asset("a3", [make_resource("IMG_0003.MOV", ResourceKind.VIDEO)], [family])
    catalog.add_asset("a4", [make_resource("IMG_0004.JPG")], [unnamed])
    catalog.add_asset("a5", [make_resource("IMG_0005.PNG")])
    return catalog


@pytest.fixture
def mock_config_data() -> dict:
    """Provide sample configuration data for testing."""
    return {
        "version": "0.1.0",
        "photos": {
            "library_path": None,
            "include_smart_albums": False,
            "include_hidden": True,
        },
        "export": {
            "destination": "/tmp/photo_export_test",
            "allow_network_access": False,
        },
        "logging": {
            "level": "debug",
            "file_output": False,
        },
    }


@pytest.fixture
def mock_osxphotos() -> Generator[MagicMock, None, None]:
    """Mock osxphotos module for Photos library tests.

    The catalog imports osxphotos lazily, so a mock module is injected
    into sys.modules for the duration of the test.

    Yields:
        MagicMock: The mocked osxphotos module.
    """
    mock_module = MagicMock()
    mock_db = MagicMock()
    mock_db.library_path = "/Users/test/Pictures/Photos Library.photoslibrary"
    mock_db.photos.return_value = []
    mock_db.album_info = []
    mock_module.PhotosDB.return_value = mock_db

    original = sys.modules.get("osxphotos")
    sys.modules["osxphotos"] = mock_module

    yield mock_module

    if original is not None:
        sys.modules["osxphotos"] = original
    else:
        del sys.modules["osxphotos"]


@pytest.fixture
def resource_factory() -> Callable[..., AssetResource]:
    """Provide :func:`make_resource` for building in-memory resources."""
    return make_resource

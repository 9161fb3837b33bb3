"""Unit tests for the Photos library catalog."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from photo_export.catalog.base import (
    CatalogAccessDeniedError,
    CatalogError,
    CatalogNotFoundError,
    LocalFileHandle,
    ResourceUnavailableError,
)
from photo_export.catalog.photos_catalog import (
    PhotosCatalog,
    PhotosExportHandle,
    get_permission_instructions,
)
from photo_export.core.types import Album, Asset, ResourceKind


def _photo(uuid: str, filename: str, **attrs) -> MagicMock:
    photo = MagicMock()
    photo.uuid = uuid
    photo.original_filename = filename
    photo.filename = filename
    defaults = {
        "path": f"/library/originals/{filename}",
        "ismovie": False,
        "favorite": False,
        "selfie": False,
        "screenshot": False,
        "live_photo": False,
        "hidden": False,
        "hasadjustments": False,
        "path_edited": None,
        "iscloudasset": False,
        "path_live_photo": None,
        "path_derivatives": [],
        "album_info": [],
    }
    defaults.update(attrs)
    for name, value in defaults.items():
        setattr(photo, name, value)
    return photo


def _album(uuid: str, title: str | None, photos: list[MagicMock]) -> MagicMock:
    album = MagicMock()
    album.uuid = uuid
    album.title = title
    album.photos = photos
    for photo in photos:
        photo.album_info = [*photo.album_info, album]
    return album


@pytest.fixture
def library(mock_osxphotos: MagicMock) -> dict:
    """Populate the mocked PhotosDB with a few photos and albums."""
    beach = _photo("p1", "IMG_0001.HEIC", favorite=True)
    clip = _photo("p2", "IMG_0002.MOV", ismovie=True)
    secret = _photo("p3", "IMG_0003.JPG", hidden=True)
    loose = _photo("p4", "IMG_0004.PNG", screenshot=True)

    trip = _album("a1", "Trip", [beach, clip, secret])
    family = _album("a2", "Family", [beach])

    db = mock_osxphotos.PhotosDB.return_value
    db.photos.return_value = [beach, clip, secret, loose]
    db.album_info = [trip, family]
    return {"db": db, "beach": beach, "clip": clip, "secret": secret, "loose": loose}


class TestOpening:
    """Tests for opening the library."""

    def test_db_is_opened_lazily(self, mock_osxphotos: MagicMock) -> None:
        catalog = PhotosCatalog()
        mock_osxphotos.PhotosDB.assert_not_called()

        catalog.list_albums()
        catalog.list_albums()

        mock_osxphotos.PhotosDB.assert_called_once_with()

    def test_custom_library_path(self, mock_osxphotos: MagicMock, tmp_path: Path) -> None:
        custom = tmp_path / "Custom.photoslibrary"
        custom.mkdir()

        PhotosCatalog(library_path=custom).open()

        mock_osxphotos.PhotosDB.assert_called_once_with(dbfile=str(custom))

    def test_missing_custom_library(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogNotFoundError, match="not found"):
            PhotosCatalog(library_path=tmp_path / "missing.photoslibrary")

    def test_permission_error(self, mock_osxphotos: MagicMock) -> None:
        mock_osxphotos.PhotosDB.side_effect = PermissionError("Operation not permitted")
        catalog = PhotosCatalog()

        with pytest.raises(CatalogAccessDeniedError, match="Full Disk Access"):
            catalog.open()

    def test_access_message_is_access_denied(self, mock_osxphotos: MagicMock) -> None:
        mock_osxphotos.PhotosDB.side_effect = RuntimeError("unable to access database")

        with pytest.raises(CatalogAccessDeniedError):
            PhotosCatalog().open()

    def test_missing_default_library(self, mock_osxphotos: MagicMock) -> None:
        mock_osxphotos.PhotosDB.side_effect = FileNotFoundError("no library")

        with pytest.raises(CatalogNotFoundError):
            PhotosCatalog().open()

    def test_other_errors(self, mock_osxphotos: MagicMock) -> None:
        mock_osxphotos.PhotosDB.side_effect = ValueError("corrupt")

        with pytest.raises(CatalogError, match="Failed to open Photos library: corrupt"):
            PhotosCatalog().open()

    def test_check_permissions(self, mock_osxphotos: MagicMock) -> None:
        assert PhotosCatalog().check_permissions() is True

    def test_check_permissions_denied(self, mock_osxphotos: MagicMock) -> None:
        mock_osxphotos.PhotosDB.side_effect = PermissionError("denied")
        catalog = PhotosCatalog()

        assert catalog.check_permissions() is False
        assert catalog.check_permissions() is False
        mock_osxphotos.PhotosDB.assert_called_once()

    def test_permission_instructions(self) -> None:
        assert "Full Disk Access" in get_permission_instructions()


class TestListing:
    """Tests for album and asset listing."""

    def test_smart_albums_first(self, library: dict) -> None:
        albums = PhotosCatalog().list_albums()

        names = [a.display_name for a in albums]
        assert names == ["Favorites", "Videos", "Selfies", "Screenshots", "Live Photos", "Trip", "Family"]
        assert all(a.is_smart for a in albums[:5])
        assert albums[5] == Album("a1", "Trip", is_smart=False)

    def test_without_smart_albums(self, library: dict) -> None:
        albums = PhotosCatalog(include_smart_albums=False).list_albums()

        assert [a.display_name for a in albums] == ["Trip", "Family"]

    def test_untitled_album(self, library: dict) -> None:
        library["db"].album_info = [_album("a9", "", [])]

        albums = PhotosCatalog(include_smart_albums=False).list_albums()

        assert albums == [Album("a9", None)]

    def test_user_album_assets_exclude_hidden(self, library: dict) -> None:
        assets = PhotosCatalog().list_assets(Album("a1", "Trip"))

        assert assets == [Asset("p1", "IMG_0001.HEIC"), Asset("p2", "IMG_0002.MOV")]

    def test_hidden_assets_included_when_enabled(self, library: dict) -> None:
        assets = PhotosCatalog(include_hidden=True).list_assets(Album("a1", "Trip"))

        assert [a.asset_id for a in assets] == ["p1", "p2", "p3"]

    def test_smart_album_assets(self, library: dict) -> None:
        catalog = PhotosCatalog()

        assert [a.asset_id for a in catalog.list_assets(Album("smart:favorites", "Favorites", True))] == ["p1"]
        assert [a.asset_id for a in catalog.list_assets(Album("smart:videos", "Videos", True))] == ["p2"]
        assert [a.asset_id for a in catalog.list_assets(Album("smart:screenshots", "Screenshots", True))] == [
            "p4"
        ]

    def test_unknown_albums(self, library: dict) -> None:
        catalog = PhotosCatalog()

        with pytest.raises(CatalogError, match="Unknown smart album"):
            catalog.list_assets(Album("smart:nope", "Nope", True))
        with pytest.raises(CatalogError, match="Album not found"):
            catalog.list_assets(Album("zzz", "Gone"))

    def test_list_all_assets(self, library: dict) -> None:
        assert [a.asset_id for a in PhotosCatalog().list_all_assets()] == ["p1", "p2", "p4"]


class TestMemberships:
    """Tests for album_memberships_of."""

    def test_ordered_by_library_album_order(self, library: dict) -> None:
        """Test membership order does not depend on the per-photo album order."""
        beach = library["beach"]
        beach.album_info = list(reversed(beach.album_info))

        memberships = PhotosCatalog().album_memberships_of(Asset("p1"))

        assert [a.display_name for a in memberships] == ["Trip", "Family"]

    def test_includes_smart_albums_when_requested(self, library: dict) -> None:
        memberships = PhotosCatalog().album_memberships_of(Asset("p1"), user_only=False)

        assert [a.display_name for a in memberships] == ["Favorites", "Trip", "Family"]

    def test_no_memberships(self, library: dict) -> None:
        assert PhotosCatalog().album_memberships_of(Asset("p4")) == []

    def test_unknown_asset(self, library: dict) -> None:
        with pytest.raises(CatalogError, match="Asset not found"):
            PhotosCatalog().album_memberships_of(Asset("missing"))


class TestResources:
    """Tests for resources_of."""

    def test_original_only(self, library: dict) -> None:
        resources = PhotosCatalog().resources_of(Asset("p1"))

        assert len(resources) == 1
        assert resources[0].kind is ResourceKind.PHOTO
        assert resources[0].original_filename == "IMG_0001.HEIC"
        assert isinstance(resources[0].handle, LocalFileHandle)

    def test_video_original(self, library: dict) -> None:
        resources = PhotosCatalog().resources_of(Asset("p2"))

        assert resources[0].kind is ResourceKind.VIDEO

    def test_edited_rendition_comes_first(self, library: dict) -> None:
        beach = library["beach"]
        beach.hasadjustments = True
        beach.path_edited = "/library/renders/IMG_0001_edited.jpeg"

        resources = PhotosCatalog().resources_of(Asset("p1"))

        assert [r.kind for r in resources] == [ResourceKind.FULL_SIZE_PHOTO, ResourceKind.PHOTO]
        assert resources[0].original_filename == "IMG_0001.jpeg"

    def test_live_photo_and_derivatives_are_other(self, library: dict) -> None:
        beach = library["beach"]
        beach.live_photo = True
        beach.path_live_photo = "/library/originals/IMG_0001.mov"
        beach.path_derivatives = ["/library/derivatives/IMG_0001_thumb.jpeg"]

        resources = PhotosCatalog().resources_of(Asset("p1"))

        assert [r.kind for r in resources] == [ResourceKind.PHOTO, ResourceKind.OTHER, ResourceKind.OTHER]
        assert resources[1].original_filename == "IMG_0001.mov"

    def test_cloud_only_original(self, library: dict) -> None:
        beach = library["beach"]
        beach.path = None
        beach.iscloudasset = True

        resources = PhotosCatalog().resources_of(Asset("p1"))

        assert len(resources) == 1
        assert isinstance(resources[0].handle, PhotosExportHandle)

    def test_missing_and_not_in_cloud(self, library: dict) -> None:
        library["beach"].path = None

        assert PhotosCatalog().resources_of(Asset("p1")) == []


class TestPhotosExportHandle:
    """Tests for PhotosExportHandle."""

    def test_network_disabled(self, tmp_path: Path) -> None:
        photo = _photo("p1", "IMG_0001.HEIC", path=None, iscloudasset=True)

        with pytest.raises(ResourceUnavailableError, match="network access is disabled"):
            PhotosExportHandle(photo).write_to(tmp_path / "IMG_0001.HEIC", allow_network_access=False)
        photo.export.assert_not_called()

    def test_export_renames_result(self, tmp_path: Path) -> None:
        photo = _photo("p1", "IMG_0001.HEIC", path=None, iscloudasset=True)
        written = tmp_path / "IMG_0001 (1).HEIC"

        def fake_export(dest, filename, **kwargs):
            written.write_bytes(b"data")
            return [str(written)]

        photo.export.side_effect = fake_export
        destination = tmp_path / "IMG_0001.HEIC"

        PhotosExportHandle(photo, edited=True).write_to(destination)

        assert destination.read_bytes() == b"data"
        assert not written.exists()
        kwargs = photo.export.call_args.kwargs
        assert kwargs["edited"] is True
        assert kwargs["overwrite"] is False
        assert kwargs["use_photos_export"] is True

    def test_export_failure(self, tmp_path: Path) -> None:
        photo = _photo("p1", "IMG_0001.HEIC")
        photo.export.side_effect = RuntimeError("download timed out")

        with pytest.raises(ResourceUnavailableError, match="download timed out"):
            PhotosExportHandle(photo).write_to(tmp_path / "IMG_0001.HEIC")

    def test_export_returns_nothing(self, tmp_path: Path) -> None:
        photo = _photo("p1", "IMG_0001.HEIC")
        photo.export.return_value = []

        with pytest.raises(ResourceUnavailableError, match="did not return"):
            PhotosExportHandle(photo).write_to(tmp_path / "IMG_0001.HEIC")


class TestChangeDetection:
    """Tests for check_for_changes."""

    @pytest.fixture
    def library_dir(self, tmp_path: Path) -> Path:
        bundle = tmp_path / "Test.photoslibrary"
        (bundle / "database").mkdir(parents=True)
        (bundle / "database" / "Photos.sqlite").write_bytes(b"")
        return bundle

    def test_no_change(self, library: dict, library_dir: Path) -> None:
        catalog = PhotosCatalog(library_path=library_dir)
        catalog.open()

        assert catalog.check_for_changes() is False

    def test_not_opened(self, library: dict, library_dir: Path) -> None:
        assert PhotosCatalog(library_path=library_dir).check_for_changes() is False

    def test_change_notifies_observers(self, library: dict, library_dir: Path, mock_osxphotos: MagicMock) -> None:
        catalog = PhotosCatalog(library_path=library_dir)
        catalog.list_albums()
        observer = MagicMock()
        catalog.add_change_observer(observer)

        database = library_dir / "database" / "Photos.sqlite"
        stat = database.stat()
        os.utime(database, (stat.st_atime, stat.st_mtime + 10))

        assert catalog.check_for_changes() is True
        observer.assert_called_once_with()

        catalog.list_albums()
        assert mock_osxphotos.PhotosDB.call_count == 2

    def test_context_manager_closes(self, library: dict) -> None:
        with PhotosCatalog() as catalog:
            catalog.list_albums()
            assert catalog._db is not None

        assert catalog._db is None

"""Asset catalogs that the export engine reads from."""

from photo_export.catalog.base import (
    AssetCatalog,
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

__all__ = [
    "AssetCatalog",
    "CatalogAccessDeniedError",
    "CatalogError",
    "CatalogNotFoundError",
    "LocalFileHandle",
    "PhotosCatalog",
    "PhotosExportHandle",
    "ResourceUnavailableError",
    "get_permission_instructions",
]

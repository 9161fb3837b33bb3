"""Pick the single best downloadable resource for an asset."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from photo_export.core.types import AssetResource


def select_best_resource(resources: Iterable[AssetResource]) -> AssetResource | None:
    """Return the preferred resource, or None if no resource is eligible.

    A full-size photo or video wins over an original photo or video.
    Within a tier the first resource in list order is chosen. Derived
    forms (``ResourceKind.OTHER``) are never selected.

    Example:
        >>> select_best_resource([thumbnail, original, full_size]) is full_size
        True
    """
    candidates = list(resources)
    for resource in candidates:
        if resource.is_full_size:
            return resource
    for resource in candidates:
        if resource.is_original:
            return resource
    return None


__all__ = ["select_best_resource"]

"""Per-item export steps: resource selection, destination planning and transfer."""

from photo_export.exporters.planner import (
    PlannedDestination,
    album_folder_name,
    infer_album,
    inferred_folder_name,
    plan_destination,
)
from photo_export.exporters.selector import select_best_resource
from photo_export.exporters.transfer import Transferer, TransferResult

__all__ = [
    "PlannedDestination",
    "TransferResult",
    "Transferer",
    "album_folder_name",
    "infer_album",
    "inferred_folder_name",
    "plan_destination",
    "select_best_resource",
]

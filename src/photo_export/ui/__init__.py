"""Terminal UI components."""

from photo_export.ui.progress import (
    ExportProgressDisplay,
    IndeterminateSpinner,
    ProgressDisplayManager,
    format_elapsed,
)

__all__ = [
    "ExportProgressDisplay",
    "IndeterminateSpinner",
    "ProgressDisplayManager",
    "format_elapsed",
]

"""Core module for the export workflow.

This module provides the export engine, the shared data model, and the
configuration and logging setup.
"""

from photo_export.core.config import (
    Config,
    ExportConfig,
    LoggingConfig,
    PhotosConfig,
)
from photo_export.core.engine import (
    DestinationAccessError,
    ExportEngine,
    ExportJobHandle,
    verify_destination,
)
from photo_export.core.logger import (
    LogLevel,
    configure_logging,
    get_log_dir,
    get_log_file_path,
    get_logger,
    set_log_level,
)
from photo_export.core.types import (
    Album,
    Asset,
    AssetResource,
    CompleteCallback,
    Dispatcher,
    ErrorCallback,
    ExportJob,
    ExportMode,
    ExportSummary,
    JobState,
    ProgressCallback,
    ResourceHandle,
    ResourceKind,
)

__all__ = [
    # Config
    "Config",
    "ExportConfig",
    "LoggingConfig",
    "PhotosConfig",
    # Engine
    "DestinationAccessError",
    "ExportEngine",
    "ExportJobHandle",
    "verify_destination",
    # Logger
    "LogLevel",
    "configure_logging",
    "get_log_dir",
    "get_log_file_path",
    "get_logger",
    "set_log_level",
    # Types
    "Album",
    "Asset",
    "AssetResource",
    "CompleteCallback",
    "Dispatcher",
    "ErrorCallback",
    "ExportJob",
    "ExportMode",
    "ExportSummary",
    "JobState",
    "ProgressCallback",
    "ResourceHandle",
    "ResourceKind",
]

"""Batch conversion of text and files into a chosen target format."""

from __future__ import annotations

from .config import (
    ConfigOverrides,
    ConvertConfig,
    ConvertConfigError,
    LoadResult,
    load_config,
)
from .controller import BatchQueueController
from .converter import Converter, OpenAIConverter
from .errors import (
    AuthFailureError,
    ConversionFailure,
    ConversionValidationError,
    EmptyInputError,
    EmptyQueueError,
    FailureKind,
    InvalidTransitionError,
    PayloadTooLargeError,
    QueueItemNotFoundError,
    TransportFailureError,
    UniconvertError,
    UnknownFailureError,
    UnsupportedTypeError,
    classify_error,
)
from .export import ExportArtifact, build_export, export_filename, write_export
from .payloads import (
    MAX_PAYLOAD_BYTES,
    FilePayload,
    Payload,
    TextPayload,
    check_admission,
)
from .state import (
    ConversionState,
    EnqueueResult,
    InputMode,
    ItemStatus,
    QueueItem,
    RunStatus,
)
from .targets import ConversionTarget, ExportFormat, export_format

__all__ = [
    "ConfigOverrides",
    "ConvertConfig",
    "ConvertConfigError",
    "LoadResult",
    "load_config",
    "BatchQueueController",
    "Converter",
    "OpenAIConverter",
    "AuthFailureError",
    "ConversionFailure",
    "ConversionValidationError",
    "EmptyInputError",
    "EmptyQueueError",
    "FailureKind",
    "InvalidTransitionError",
    "PayloadTooLargeError",
    "QueueItemNotFoundError",
    "TransportFailureError",
    "UniconvertError",
    "UnknownFailureError",
    "UnsupportedTypeError",
    "classify_error",
    "ExportArtifact",
    "build_export",
    "export_filename",
    "write_export",
    "MAX_PAYLOAD_BYTES",
    "FilePayload",
    "Payload",
    "TextPayload",
    "check_admission",
    "ConversionState",
    "EnqueueResult",
    "InputMode",
    "ItemStatus",
    "QueueItem",
    "RunStatus",
    "ConversionTarget",
    "ExportFormat",
    "export_format",
]

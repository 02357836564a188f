"""Core / service layer — domain models, pure selection logic, orchestration.

Rules
-----
* No ``print()`` calls.
* Network access only through the :class:`ByteSource` protocol.
* No imports from ``cli`` or ``infra``.
* Selection, naming and parsing functions are pure and deterministic.
"""

from vidgrab.core.download_service import DownloadService
from vidgrab.core.filename import apply_template, resolve_filename, sanitize_filename
from vidgrab.core.metadata_service import MetadataService
from vidgrab.core.models import (
    DownloadResult,
    FilenameMetadata,
    FilterKind,
    QualityFilter,
    RenditionCatalog,
    Stream,
    TieBreak,
)
from vidgrab.core.options import DownloadOptions
from vidgrab.core.progress import MultiReporter, NullReporter, ProgressMode
from vidgrab.core.protocols import ByteResponse, ByteSource, Encoder, Extractor, MetadataProvider
from vidgrab.core.quality import available_qualities, parse_quality_filter, select, select_stream
from vidgrab.core.transfer import TransferEngine

__all__: list[str] = [
    "ByteResponse",
    "ByteSource",
    "DownloadOptions",
    "DownloadResult",
    "DownloadService",
    "Encoder",
    "Extractor",
    "FilenameMetadata",
    "FilterKind",
    "MetadataProvider",
    "MetadataService",
    "MultiReporter",
    "NullReporter",
    "ProgressMode",
    "QualityFilter",
    "RenditionCatalog",
    "Stream",
    "TieBreak",
    "TransferEngine",
    "apply_template",
    "available_qualities",
    "parse_quality_filter",
    "resolve_filename",
    "sanitize_filename",
    "select",
    "select_stream",
]

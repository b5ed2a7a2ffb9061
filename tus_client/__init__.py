"""TUS Client Library

A Python implementation of the client side of the TUS resumable upload protocol.
Uploads are described by immutable, serializable UploadMeta snapshots so an
interrupted upload can be resumed from another process.
"""

__version__ = "0.1.0"

from tus_client.client import TusClient, UploadStats
from tus_client.config import ClientOptions
from tus_client.exceptions import (
    BadRequestError,
    ChecksumMismatchError,
    FileReadError,
    FileTooLargeError,
    MissingHeaderError,
    MissingUploadUrlError,
    OffsetConflictError,
    TusCommunicationError,
    TusError,
    TusTransportError,
    TusUploadFailed,
    UnexpectedStatusCodeError,
    UploadNotFoundError,
)
from tus_client.headers import Header, decode_metadata, encode_metadata
from tus_client.meta import Extension, TusServerInfo, UploadMeta, UploadStatus
from tus_client.operations import Operation
from tus_client.transport import HttpRequest, HttpResponse, Transport, UrllibTransport

__all__ = [
    "TusClient",
    "ClientOptions",
    "UploadStats",
    "UploadMeta",
    "UploadStatus",
    "TusServerInfo",
    "Extension",
    "Operation",
    "Header",
    "encode_metadata",
    "decode_metadata",
    "Transport",
    "UrllibTransport",
    "HttpRequest",
    "HttpResponse",
    "TusError",
    "TusCommunicationError",
    "TusUploadFailed",
    "TusTransportError",
    "FileReadError",
    "MissingHeaderError",
    "MissingUploadUrlError",
    "BadRequestError",
    "UploadNotFoundError",
    "OffsetConflictError",
    "FileTooLargeError",
    "ChecksumMismatchError",
    "UnexpectedStatusCodeError",
]

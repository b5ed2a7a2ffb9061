"""Upload state and server capability records."""

import json
import os
import stat
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from tus_client.config import DEFAULT_CHUNK_SIZE, TUS_VERSION
from tus_client.exceptions import (
    EmptyFilenameError,
    FileReadError,
    InvalidFilenameError,
    InvalidMetadataKeyError,
)
from tus_client.headers import TusHeaders, encode_metadata

# Metadata entries derived from the snapshot itself
RESERVED_METADATA_KEYS = frozenset({"filename", "filetype"})


@dataclass(frozen=True)
class UploadStatus:
    """Progress of one upload.

    Attributes:
        size: Total size of the file in bytes
        bytes_uploaded: Offset the server has acknowledged
    """

    size: int
    bytes_uploaded: int = 0

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"size must not be negative, got {self.size}")
        if not 0 <= self.bytes_uploaded <= self.size:
            raise ValueError(
                f"bytes_uploaded must be between 0 and {self.size}, got {self.bytes_uploaded}"
            )

    @property
    def remaining(self) -> int:
        return self.size - self.bytes_uploaded


@dataclass(frozen=True)
class UploadMeta:
    """Immutable snapshot of one upload.

    Every transition returns a new value, so a snapshot taken before a failed
    request stays valid and can be handed back to ``TusClient.resume`` later,
    possibly after a round trip through :meth:`to_json` / :meth:`from_json`.

    Attributes:
        upload_host: URL the creation request is sent to, e.g. "http://localhost:8080/files"
        file_path: Local path of the file being uploaded
        status: Size and acknowledged offset
        remote_url: URL of the upload resource, set by the server on creation
        version: TUS protocol version sent with every request
        extra_meta: Extra entries for the Upload-Metadata header (read-only copy);
            "filename" and "filetype" are reserved
        mime_type: Sent as the "filetype" metadata entry
        custom_headers: Headers added to every request, winning over defaults
            (read-only copy)
        error_count: Number of failed attempts recorded on this snapshot
        chunk_size: Chunk size used when uploading
    """

    upload_host: str
    file_path: str
    status: UploadStatus
    remote_url: Optional[str] = None
    version: str = TUS_VERSION
    extra_meta: Optional[Mapping[str, str]] = None
    mime_type: Optional[str] = None
    custom_headers: Optional[Mapping[str, str]] = None
    error_count: int = 0
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1 byte, got {self.chunk_size}")
        if self.extra_meta is not None:
            reserved = RESERVED_METADATA_KEYS.intersection(self.extra_meta)
            if reserved:
                raise InvalidMetadataKeyError(
                    f"Upload-metadata keys {sorted(reserved)} are set from the file and mime type"
                )
            object.__setattr__(self, "extra_meta", MappingProxyType(dict(self.extra_meta)))
        if self.custom_headers is not None:
            object.__setattr__(
                self, "custom_headers", MappingProxyType(dict(self.custom_headers))
            )

    @classmethod
    def from_file(
        cls,
        file_path: Union[str, os.PathLike],
        upload_host: str,
        extra_meta: Optional[Mapping[str, str]] = None,
        custom_headers: Optional[Mapping[str, str]] = None,
        mime_type: Optional[str] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        version: str = TUS_VERSION,
    ) -> "UploadMeta":
        """Build the initial snapshot for a local file.

        Raises:
            FileReadError: If the path does not exist or is not a regular file
            EmptyFilenameError: If the path has no basename
            InvalidFilenameError: If the basename is "/"
        """
        file_path = os.fspath(file_path)
        try:
            st = os.stat(file_path)
        except FileNotFoundError as e:
            raise FileReadError(f"File not found: {file_path}") from e
        except OSError as e:
            raise FileReadError(f"Unable to stat {file_path}: {e}") from e

        if stat.S_ISDIR(st.st_mode):
            raise FileReadError(f"Cannot be a directory: {file_path}")
        if not stat.S_ISREG(st.st_mode):
            raise FileReadError(f"Not a regular file: {file_path}")

        meta = cls(
            upload_host=upload_host,
            file_path=file_path,
            status=UploadStatus(size=st.st_size),
            version=version,
            extra_meta=dict(extra_meta) if extra_meta else None,
            mime_type=mime_type,
            custom_headers=dict(custom_headers) if custom_headers else None,
            chunk_size=chunk_size,
        )
        meta.filename()
        return meta

    def filename(self) -> str:
        """Basename sent as the "filename" metadata entry."""
        filename = os.path.basename(self.file_path)
        if not filename:
            raise EmptyFilenameError(f"Empty filename in path {self.file_path!r}")
        if filename == "/":
            raise InvalidFilenameError("Filename cannot be '/'")
        return filename

    def metadata_pairs(self) -> dict[str, str]:
        """Entries of the Upload-Metadata header: filename, filetype, then extras."""
        pairs = {"filename": self.filename()}
        if self.mime_type:
            pairs["filetype"] = self.mime_type
        if self.extra_meta:
            pairs.update(self.extra_meta)
        return pairs

    def upload_metadata(self) -> str:
        """Encoded value for the Upload-Metadata header."""
        return encode_metadata(self.metadata_pairs())

    @property
    def size(self) -> int:
        return self.status.size

    @property
    def bytes_uploaded(self) -> int:
        return self.status.bytes_uploaded

    @property
    def is_complete(self) -> bool:
        return self.status.bytes_uploaded >= self.status.size

    def with_bytes_uploaded(self, bytes_uploaded: int) -> "UploadMeta":
        """Copy with an updated acknowledged offset."""
        return replace(self, status=replace(self.status, bytes_uploaded=bytes_uploaded))

    def with_remote_url(self, remote_url: str) -> "UploadMeta":
        """Copy with the upload resource URL set.

        The remote URL is assigned once; replacing it with a different value
        raises ValueError.
        """
        if self.remote_url is not None and self.remote_url != remote_url:
            raise ValueError(f"remote_url is already set to {self.remote_url}")
        return replace(self, remote_url=remote_url)

    def with_error(self) -> "UploadMeta":
        """Copy with error_count incremented."""
        return replace(self, error_count=self.error_count + 1)

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["status"] = asdict(self.status)
        for name in ("extra_meta", "custom_headers"):
            if data[name] is not None:
                data[name] = dict(data[name])
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UploadMeta":
        data = dict(data)
        status = data.pop("status")
        if not isinstance(status, UploadStatus):
            status = UploadStatus(**status)
        return cls(status=status, **data)

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, value: str) -> "UploadMeta":
        return cls.from_dict(json.loads(value))


class Extension(str, Enum):
    """Protocol extensions a server may advertise in Tus-Extension."""

    CREATION = "creation"
    CREATION_WITH_UPLOAD = "creation-with-upload"
    CREATION_DEFER_LENGTH = "creation-defer-length"
    TERMINATION = "termination"
    EXPIRATION = "expiration"
    CHECKSUM = "checksum"
    CHECKSUM_TRAILER = "checksum-trailer"
    CONCATENATION = "concatenation"
    CONCATENATION_UNFINISHED = "concatenation-unfinished"


@dataclass(frozen=True)
class TusServerInfo:
    """Capabilities advertised by a server in answer to OPTIONS."""

    version: Optional[str] = None
    max_size: Optional[int] = None
    extensions: frozenset = field(default_factory=frozenset)
    supported_versions: list[str] = field(default_factory=list)
    supported_checksum_algorithms: list[str] = field(default_factory=list)

    @classmethod
    def from_headers(cls, headers: TusHeaders) -> "TusServerInfo":
        return cls(
            version=headers.resumable,
            max_size=headers.max_size,
            extensions=frozenset(headers.extensions or ()),
            supported_versions=headers.supported_versions or [],
            supported_checksum_algorithms=headers.checksum_algorithms or [],
        )

    def supports(self, extension: Union[Extension, str]) -> bool:
        """Check whether the server advertised an extension."""
        name = extension.value if isinstance(extension, Extension) else extension
        return name in self.extensions

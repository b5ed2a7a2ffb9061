"""TUS header names and the codec between wire headers and typed fields."""

import base64
import binascii
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from tus_client.exceptions import (
    InvalidHeaderError,
    InvalidHeaderValueError,
    InvalidMetadataKeyError,
    MissingHeaderError,
)

METADATA_DELIMITER = ","

OFFSET_OCTET_STREAM = "application/offset+octet-stream"

# RFC 7230 token characters
_TOKEN_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_INVALID_KEY_RE = re.compile(r"^$|[\s,:]")


class Header(str, Enum):
    """Wire names of every header the client reads or writes."""

    # Version of the protocol used by the client or the server.
    TUS_RESUMABLE = "Tus-Resumable"
    # Comma-separated list of protocol versions supported by the server.
    TUS_VERSION = "Tus-Version"
    # Comma-separated list of extensions supported by the server.
    TUS_EXTENSION = "Tus-Extension"
    # Maximum allowed size of an entire upload in bytes.
    TUS_MAX_SIZE = "Tus-Max-Size"
    TUS_CHECKSUM_ALGORITHM = "Tus-Checksum-Algorithm"
    UPLOAD_OFFSET = "Upload-Offset"
    UPLOAD_LENGTH = "Upload-Length"
    UPLOAD_METADATA = "Upload-Metadata"
    CONTENT_TYPE = "Content-Type"
    LOCATION = "Location"

    def __str__(self) -> str:
        return self.value


MetadataValue = Optional[Union[str, bytes]]


def encode_metadata(pairs: Mapping[str, MetadataValue], encoding: str = "utf-8") -> str:
    """Encode metadata according to TUS protocol specification.

    Each value is base64 encoded on its own and paired with its key as
    ``"key base64value"``; entries are joined with a comma. A ``None`` value
    produces a key without a value.

    An empty value is sent as the key followed by a single space. Servers and
    proxies that strip trailing header whitespace turn an empty value in the
    last entry into a key without a value (``None``); pass ``None`` instead when
    the distinction does not matter.

    Args:
        pairs: Ordered mapping of metadata keys to values
        encoding: Encoding used for str values (bytes are sent as-is)

    Returns:
        Value for the Upload-Metadata header

    Raises:
        InvalidMetadataKeyError: If a key is empty or contains spaces, commas or colons
    """
    encoded_list = []
    for key, value in pairs.items():
        key_str = str(key)

        if _INVALID_KEY_RE.search(key_str):
            raise InvalidMetadataKeyError(
                f'Upload-metadata key "{key_str}" cannot be empty nor contain spaces, '
                "commas or colons."
            )

        if value is None:
            encoded_list.append(key_str)
            continue

        value_bytes = value if isinstance(value, bytes) else value.encode(encoding)
        encoded_value = base64.b64encode(value_bytes).decode("ascii")
        encoded_list.append(f"{key_str} {encoded_value}")

    return METADATA_DELIMITER.join(encoded_list)


def decode_metadata(value: str, encoding: Optional[str] = "utf-8") -> dict[str, Any]:
    """Decode an Upload-Metadata header value.

    Inverse of :func:`encode_metadata`. With ``encoding=None`` the decoded
    values are returned as bytes.

    Raises:
        ValueError: If an entry value is not valid base64 or cannot be decoded
    """
    metadata: dict[str, Any] = {}
    for pair in value.split(METADATA_DELIMITER):
        pair = pair.lstrip()
        if not pair:
            continue
        key, separator, encoded = pair.partition(" ")
        if not separator:
            metadata[key] = None
            continue
        encoded = encoded.strip()
        try:
            raw = base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 value for metadata key {key!r}") from e
        metadata[key] = raw.decode(encoding) if encoding else raw
    return metadata


def _parse_uint(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def _parse_list(value: Optional[str]) -> Optional[list[str]]:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class TusHeaders:
    """Typed view of TUS response headers.

    Attribute access is the lenient decode mode: a missing or malformed header
    is simply ``None``. :meth:`require` is the strict mode used for fields the
    upload state machine depends on.
    """

    offset: Optional[int] = None
    upload_length: Optional[int] = None
    resumable: Optional[str] = None
    supported_versions: Optional[list[str]] = None
    extensions: Optional[list[str]] = None
    max_size: Optional[int] = None
    checksum_algorithms: Optional[list[str]] = None
    upload_metadata: Optional[dict[str, Any]] = None
    location: Optional[str] = None

    _SOURCES = {
        "offset": Header.UPLOAD_OFFSET,
        "upload_length": Header.UPLOAD_LENGTH,
        "resumable": Header.TUS_RESUMABLE,
        "supported_versions": Header.TUS_VERSION,
        "extensions": Header.TUS_EXTENSION,
        "max_size": Header.TUS_MAX_SIZE,
        "checksum_algorithms": Header.TUS_CHECKSUM_ALGORITHM,
        "upload_metadata": Header.UPLOAD_METADATA,
        "location": Header.LOCATION,
    }

    def require(self, name: str) -> Any:
        """Return a decoded field or raise MissingHeaderError naming its wire header."""
        value = getattr(self, name)
        if value is None:
            raise MissingHeaderError(self._SOURCES[name].value)
        return value


def decode_headers(raw: Mapping[str, str]) -> TusHeaders:
    """Decode raw response headers into :class:`TusHeaders`.

    Header names are matched case-insensitively. Never raises.
    """
    headers = {str(k).lower(): v for k, v in raw.items()}

    def get(header: Header) -> Optional[str]:
        return headers.get(header.value.lower())

    location = get(Header.LOCATION)
    resumable = get(Header.TUS_RESUMABLE)

    upload_metadata = None
    metadata_value = get(Header.UPLOAD_METADATA)
    if metadata_value is not None:
        try:
            upload_metadata = decode_metadata(metadata_value)
        except ValueError:
            upload_metadata = None

    return TusHeaders(
        offset=_parse_uint(get(Header.UPLOAD_OFFSET)),
        upload_length=_parse_uint(get(Header.UPLOAD_LENGTH)),
        resumable=resumable.strip() if resumable else None,
        supported_versions=_parse_list(get(Header.TUS_VERSION)),
        extensions=_parse_list(get(Header.TUS_EXTENSION)),
        max_size=_parse_uint(get(Header.TUS_MAX_SIZE)),
        checksum_algorithms=_parse_list(get(Header.TUS_CHECKSUM_ALGORITHM)),
        upload_metadata=upload_metadata,
        location=location.strip() if location and location.strip() else None,
    )


def validate_header(name: str, value: str) -> None:
    """Check that a request header can be put on the wire.

    Raises:
        InvalidHeaderError: If the name is not an HTTP token
        InvalidHeaderValueError: If the value contains line breaks or non latin-1 text
    """
    if not isinstance(name, str) or not _TOKEN_RE.fullmatch(name):
        raise InvalidHeaderError(name)
    if not isinstance(value, str) or "\r" in value or "\n" in value or "\0" in value:
        raise InvalidHeaderValueError(name, value)
    try:
        value.encode("latin-1")
    except UnicodeEncodeError as e:
        raise InvalidHeaderValueError(name, value) from e


def merge_headers(
    defaults: Mapping[str, str], custom: Optional[Mapping[str, str]] = None
) -> dict[str, str]:
    """Merge custom headers over defaults; names compare case-insensitively."""
    merged = dict(defaults)
    for name, value in (custom or {}).items():
        for existing in [k for k in merged if k.lower() == str(name).lower()]:
            del merged[existing]
        merged[name] = value
    return merged

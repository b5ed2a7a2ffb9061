"""
Global tus_client exception classes.

Every error raised by the client derives from TusError. Errors raised while an
upload is being driven carry the last valid UploadMeta snapshot in ``meta`` so
callers can persist it and resume later.
"""


class TusError(Exception):
    """Base class for all tus_client errors.

    Attributes:
        message (str): Main message of the exception
        meta (UploadMeta | None): Last valid upload snapshot, when known
    """

    def __init__(self, message=None, meta=None):
        message = message or (self.__doc__ or type(self).__name__).strip().splitlines()[0]
        super().__init__(message)
        self.message = message
        self.meta = meta


class TusValidationError(TusError, ValueError):
    """Local input was rejected before any request was sent."""


class FileReadError(TusValidationError):
    """Unable to read the file specified."""


class EmptyFilenameError(TusValidationError):
    """Empty filename."""


class InvalidFilenameError(TusValidationError):
    """Invalid filename."""


class TusEncodingError(TusError, ValueError):
    """A request header could not be encoded."""


class InvalidHeaderError(TusEncodingError):
    """Invalid header name."""

    def __init__(self, name, meta=None):
        super().__init__(f"Invalid header: {name!r}", meta=meta)
        self.name = name


class InvalidHeaderValueError(TusEncodingError):
    """Invalid header value."""

    def __init__(self, name, value, meta=None):
        super().__init__(f"Invalid value for header {name}: {value!r}", meta=meta)
        self.name = name
        self.value = value


class InvalidMetadataKeyError(TusEncodingError):
    """Invalid Upload-Metadata key."""


class TusTransportError(TusError):
    """The HTTP request could not be executed (connection, DNS, TLS, ...)."""


class MissingHeaderError(TusError):
    """A required response header was absent or unparsable."""

    def __init__(self, header, meta=None):
        super().__init__(f"Missing required header: {header}", meta=meta)
        self.header = header


class MissingUploadUrlError(TusError):
    """Missing upload URL - must create one with the creation extension first."""


class TusCommunicationError(TusError):
    """
    Exception raised when communication with TUS server behaves unexpectedly.

    Attributes:
        message (str): Main message of the exception
        status_code (int): HTTP status code of response indicating an error
        response_content (bytes): Content of response indicating an error
    """

    def __init__(self, message=None, status_code=None, response_content=None, meta=None):
        default_message = f"Communication with TUS server failed with status {status_code}"
        super().__init__(message or default_message, meta=meta)
        self.status_code = status_code
        self.response_content = response_content

    @property
    def response_text(self) -> str:
        """Response body decoded as text (empty when there was none)."""
        if not self.response_content:
            return ""
        return self.response_content.decode("utf-8", errors="replace")


class BadRequestError(TusCommunicationError):
    """Server rejected the request as malformed (400)."""


class UploadNotFoundError(TusCommunicationError):
    """The upload resource was not found by the server (404)."""


class OffsetConflictError(TusCommunicationError):
    """Upload-Offset did not match the server's offset (409); re-run get_offset."""


class FileTooLargeError(TusCommunicationError):
    """The file is larger than what the server accepts (413)."""


class ChecksumMismatchError(TusCommunicationError):
    """Server reported a checksum mismatch (460)."""


class UnexpectedStatusCodeError(TusCommunicationError):
    """Server answered with an unexpected status code."""


class TusUploadFailed(TusCommunicationError):
    """Exception raised when an attempted upload fails."""


class InvalidOffsetError(TusUploadFailed):
    """Server reported an offset that moves backwards or past the upload size."""

    def __init__(self, previous, reported, size, meta=None):
        super().__init__(
            f"Server reported offset {reported} after {previous} (upload size {size})",
            meta=meta,
        )
        self.previous = previous
        self.reported = reported
        self.size = size


class UnequalSizeError(TusUploadFailed):
    """The local file size and the size reported by the server do not match."""

    def __init__(self, local_size, remote_size, meta=None):
        super().__init__(
            f"Local file has {local_size} bytes but server expects {remote_size}",
            meta=meta,
        )
        self.local_size = local_size
        self.remote_size = remote_size

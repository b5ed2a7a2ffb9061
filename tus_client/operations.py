"""TUS protocol operations.

Each member of :class:`Operation` knows its HTTP verb, the headers it sends,
the URL it targets and how a successful response changes the upload state.
The set is closed; dispatch is an explicit branch per member.
"""

import logging
from enum import Enum
from typing import Optional
from urllib.parse import urljoin

from tus_client.exceptions import (
    BadRequestError,
    ChecksumMismatchError,
    FileTooLargeError,
    InvalidOffsetError,
    MissingUploadUrlError,
    OffsetConflictError,
    UnequalSizeError,
    UnexpectedStatusCodeError,
    UploadNotFoundError,
)
from tus_client.headers import (
    OFFSET_OCTET_STREAM,
    Header,
    decode_headers,
    merge_headers,
    validate_header,
)
from tus_client.meta import UploadMeta
from tus_client.transport import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Protocol operations the client can run against an upload."""

    # Creation extension: POST to the upload host, server answers with Location.
    CREATE = "create"
    # HEAD on the upload resource, server answers with Upload-Offset.
    GET_OFFSET = "get_offset"
    # PATCH one chunk at the current offset.
    UPLOAD = "upload"
    # Termination extension: DELETE the upload resource.
    TERMINATE = "terminate"

    @property
    def method(self) -> str:
        if self is Operation.CREATE:
            return "POST"
        if self is Operation.GET_OFFSET:
            return "HEAD"
        if self is Operation.UPLOAD:
            return "PATCH"
        return "DELETE"

    def headers(self, meta: UploadMeta) -> dict[str, str]:
        """Request headers for ``meta``; custom headers win on collision.

        Raises:
            TusEncodingError: If a header or metadata entry cannot be encoded
        """
        headers = {
            Header.TUS_RESUMABLE.value: meta.version,
            Header.UPLOAD_METADATA.value: meta.upload_metadata(),
        }
        if self is Operation.CREATE:
            headers[Header.UPLOAD_LENGTH.value] = str(meta.size)
        elif self is Operation.UPLOAD:
            headers[Header.CONTENT_TYPE.value] = OFFSET_OCTET_STREAM
            headers[Header.UPLOAD_OFFSET.value] = str(meta.bytes_uploaded)

        headers = merge_headers(headers, meta.custom_headers)
        for name, value in headers.items():
            validate_header(name, value)
        return headers

    def url_for(self, meta: UploadMeta) -> str:
        """Target URL: the upload host for CREATE, the upload resource otherwise.

        Raises:
            MissingUploadUrlError: If the upload resource was never created
        """
        if self is Operation.CREATE:
            return meta.upload_host
        if meta.remote_url is None:
            raise MissingUploadUrlError()
        return meta.remote_url

    def build_request(self, meta: UploadMeta, body: Optional[bytes] = None) -> HttpRequest:
        return HttpRequest(
            method=self.method,
            url=self.url_for(meta),
            headers=self.headers(meta),
            body=body if self is Operation.UPLOAD else None,
        )

    def handle_response(
        self, response: HttpResponse, meta: UploadMeta, body: Optional[bytes] = None
    ) -> UploadMeta:
        """Decode a successful response into the next upload snapshot.

        Args:
            response: 2xx response for this operation
            meta: Snapshot the request was built from
            body: Chunk sent with an UPLOAD request

        Raises:
            MissingHeaderError: If Location (CREATE) or Upload-Offset is absent
            InvalidOffsetError: If the reported offset moves backwards, stalls or overshoots
            UnequalSizeError: If the server's Upload-Length disagrees with the local size
        """
        headers = decode_headers(response.headers)

        if self is Operation.CREATE:
            location = headers.require("location")
            remote_url = urljoin(meta.upload_host, location)
            logger.debug(f"Upload resource created at {remote_url}")
            return meta.with_remote_url(remote_url)

        if self is Operation.GET_OFFSET:
            offset = headers.require("offset")
            if headers.upload_length is not None and headers.upload_length != meta.size:
                raise UnequalSizeError(meta.size, headers.upload_length)
            if offset > meta.size:
                raise InvalidOffsetError(meta.bytes_uploaded, offset, meta.size)
            return meta.with_bytes_uploaded(offset)

        if self is Operation.UPLOAD:
            offset = headers.require("offset")
            previous = meta.bytes_uploaded
            stalled = bool(body) and offset == previous
            if offset < previous or offset > meta.size or stalled:
                raise InvalidOffsetError(previous, offset, meta.size)
            return meta.with_bytes_uploaded(offset)

        return meta


def raise_for_status(response: HttpResponse) -> None:
    """Map a non-2xx status to its protocol error.

    Raises:
        BadRequestError: 400
        UploadNotFoundError: 404
        OffsetConflictError: 409
        FileTooLargeError: 413
        ChecksumMismatchError: 460
        UnexpectedStatusCodeError: any other non-2xx status
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    kwargs = {"status_code": status, "response_content": response.body}
    if status == 400:
        raise BadRequestError(f"Bad Request - {response.text}", **kwargs)
    if status == 404:
        raise UploadNotFoundError("The upload was not found by the server", **kwargs)
    if status == 409:
        raise OffsetConflictError(
            "Upload-Offset does not match the server's offset", **kwargs
        )
    if status == 413:
        raise FileTooLargeError(
            "The file is larger than what is supported by the server", **kwargs
        )
    if status == 460:
        raise ChecksumMismatchError("Checksum mismatch", **kwargs)
    raise UnexpectedStatusCodeError(
        f"Unexpected status code ({status}): {response.text}", **kwargs
    )

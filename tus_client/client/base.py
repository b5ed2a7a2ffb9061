"""TUS protocol client implementation."""

import logging
import os
from dataclasses import replace
from typing import Callable, Mapping, Optional, Union

from tus_client.client.stats import UploadStats
from tus_client.config import TUS_VERSION, ClientOptions
from tus_client.exceptions import FileReadError, TusError, UnexpectedStatusCodeError
from tus_client.headers import decode_headers
from tus_client.meta import TusServerInfo, UploadMeta
from tus_client.operations import Operation, raise_for_status
from tus_client.transport import HttpRequest, HttpResponse, Transport, UrllibTransport

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadStats], None]


class TusClient:
    """TUS protocol client for uploading files.

    This client implements TUS protocol version 1.0.0 as specified at:
    https://tus.io/protocols/resumable-upload.html

    Uploads are driven through immutable :class:`UploadMeta` snapshots. Every
    call takes a snapshot and returns the next one; a failing call raises a
    :class:`TusError` whose ``meta`` attribute holds the last valid snapshot
    (with ``error_count`` incremented), which can be persisted with
    ``UploadMeta.to_json`` and handed to :meth:`resume` later.

    Chunks are sent strictly one after another: the offset acknowledged for one
    chunk is the Upload-Offset of the next, and the server rejects mismatched
    offsets with 409. Nothing is retried automatically.

    Example:
        >>> client = TusClient(ClientOptions(chunk_size=1024 * 1024))
        >>> meta = client.create("large_file.bin", "http://localhost:8080/files")
        >>> try:
        ...     meta = client.resume(meta)
        ... except TusError as e:
        ...     saved = e.meta.to_json()
        >>> # later, in another process
        >>> meta = client.get_offset(UploadMeta.from_json(saved))
        >>> meta = client.resume(meta)
    """

    TUS_VERSION = TUS_VERSION

    def __init__(
        self,
        options: Optional[ClientOptions] = None,
        transport: Optional[Transport] = None,
    ):
        """Initialize TUS client.

        Args:
            options: Client options (default: ClientOptions())
            transport: HTTP transport (default: UrllibTransport())
        """
        self.options = options or ClientOptions()
        self.transport = transport or UrllibTransport()

    def _run(self, op: Operation, meta: UploadMeta, body: Optional[bytes] = None) -> UploadMeta:
        """Send one operation and decode its response into the next snapshot."""
        request = op.build_request(meta, body)
        response = self.transport.send(request)
        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        raise_for_status(response)
        return op.handle_response(response, meta, body)

    def create(
        self,
        file_path: Union[str, os.PathLike],
        host: str,
        extra_meta: Optional[Mapping[str, str]] = None,
        custom_headers: Optional[Mapping[str, str]] = None,
        mime_type: Optional[str] = None,
    ) -> UploadMeta:
        """Create an upload resource on the server for a local file.

        Args:
            file_path: Path to file to upload
            host: Upload endpoint of the TUS server
            extra_meta: Extra Upload-Metadata entries
            custom_headers: Headers added to every request for this upload
            mime_type: Sent as the "filetype" metadata entry

        Returns:
            Snapshot with ``remote_url`` set and ``bytes_uploaded == 0``

        Raises:
            FileReadError: If the path is missing, a directory or not a regular file
            TusError: If the creation request fails
        """
        meta = UploadMeta.from_file(
            file_path,
            host,
            extra_meta=extra_meta,
            custom_headers=custom_headers,
            mime_type=mime_type,
            chunk_size=self.options.chunk_size,
            version=self.options.tus_version,
        )
        try:
            meta = self._run(Operation.CREATE, meta)
        except TusError as e:
            e.meta = meta.with_error()
            raise

        logger.info(f"Upload created: {meta.remote_url} ({meta.size} bytes)")
        return meta

    def get_offset(self, meta: UploadMeta) -> UploadMeta:
        """Synchronize ``bytes_uploaded`` with the offset the server reports.

        Raises:
            MissingUploadUrlError: If the upload was never created
            TusError: If the request fails
        """
        try:
            return self._run(Operation.GET_OFFSET, meta)
        except TusError as e:
            e.meta = meta.with_error()
            raise

    def resume(
        self, meta: UploadMeta, progress_callback: Optional[ProgressCallback] = None
    ) -> UploadMeta:
        """Upload the remaining bytes of the file, one chunk at a time.

        Args:
            meta: Snapshot to continue from; its ``bytes_uploaded`` is the file
                position of the first chunk
            progress_callback: Optional callback receiving UploadStats after each chunk

        Returns:
            Snapshot with ``bytes_uploaded == size``

        Raises:
            FileReadError: If the file cannot be read or is shorter than ``size``
            TusError: If a chunk upload fails; ``e.meta`` is the last acknowledged snapshot
        """
        if meta.is_complete:
            return meta

        stats = UploadStats(
            total_bytes=meta.size,
            uploaded_bytes=meta.bytes_uploaded,
            initial_bytes=meta.bytes_uploaded,
        )
        buffer = memoryview(bytearray(meta.chunk_size))

        try:
            with open(meta.file_path, "rb") as fs:
                while not meta.is_complete:
                    offset = meta.bytes_uploaded
                    fs.seek(offset)
                    count = fs.readinto(buffer[: min(meta.chunk_size, meta.status.remaining)])
                    if not count:
                        raise FileReadError(
                            f"Zero bytes read from {meta.file_path} at offset {offset}; "
                            f"expected {meta.size} bytes"
                        )

                    meta = self._run(Operation.UPLOAD, meta, bytes(buffer[:count]))
                    stats = replace(
                        stats,
                        uploaded_bytes=meta.bytes_uploaded,
                        chunks_completed=stats.chunks_completed + 1,
                    )
                    logger.debug(
                        f"Chunk at offset {offset} acknowledged ({meta.bytes_uploaded}/{meta.size})"
                    )

                    if progress_callback:
                        progress_callback(stats)
        except TusError as e:
            e.meta = meta.with_error()
            raise
        except OSError as e:
            raise FileReadError(
                f"Unable to read {meta.file_path}: {e}", meta=meta.with_error()
            ) from e

        logger.info(
            f"Upload completed: {meta.remote_url} in {stats.elapsed_time:.2f}s "
            f"({stats.upload_speed_mbps:.2f} MB/s)"
        )
        return meta

    def upload(
        self,
        file_path: Union[str, os.PathLike],
        host: str,
        extra_meta: Optional[Mapping[str, str]] = None,
        custom_headers: Optional[Mapping[str, str]] = None,
        mime_type: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> UploadMeta:
        """Create an upload resource and upload the whole file."""
        meta = self.create(
            file_path,
            host,
            extra_meta=extra_meta,
            custom_headers=custom_headers,
            mime_type=mime_type,
        )
        return self.resume(meta, progress_callback=progress_callback)

    def terminate(self, meta: UploadMeta) -> None:
        """Delete the upload resource on the server.

        Best effort: failures, including a missing remote URL or an upload the
        server no longer knows, are logged as warnings and never raised. This is
        the only call that drops errors.
        """
        try:
            self._run(Operation.TERMINATE, meta)
        except TusError as e:
            logger.warning(f"Failed to terminate upload {meta.remote_url}: {e}")
            return
        logger.info(f"Upload terminated: {meta.remote_url}")

    def get_server_info(self, url: str) -> TusServerInfo:
        """Get server information and capabilities via OPTIONS request.

        Raises:
            UnexpectedStatusCodeError: If the server answers with anything but 200 or 204
            TusTransportError: If the request cannot be sent
        """
        response: HttpResponse = self.transport.send(HttpRequest(method="OPTIONS", url=url))
        if response.status_code not in (200, 204):
            raise UnexpectedStatusCodeError(
                f"Failed to get server info ({response.status_code}): {response.text}",
                status_code=response.status_code,
                response_content=response.body,
            )
        return TusServerInfo.from_headers(decode_headers(response.headers))

"""Shared fixtures: an in-process TUS server and a scripted transport."""

import os
import shutil
import tempfile
import uuid
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Lock, Thread
from typing import Any, Callable, Optional, Union

import pytest

from tus_client.transport import HttpRequest, HttpResponse, Transport


class InMemoryTusServer:
    """Minimal TUS 1.0.0 server keeping uploads in memory.

    Supports the creation and termination extensions and answers OPTIONS
    with its capabilities.
    """

    TUS_VERSION = "1.0.0"
    SUPPORTED_EXTENSIONS = ["creation", "termination"]

    def __init__(self, base_path: str = "/files", max_size: int = 0):
        self.base_path = base_path.rstrip("/")
        self.max_size = max_size
        self.uploads: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str, dict[str, str]]] = []
        self.lock = Lock()

    def handle_request(
        self, method: str, path: str, headers: dict[str, str], body: bytes = b""
    ) -> tuple[int, dict[str, str], bytes]:
        headers = {k.lower(): v for k, v in headers.items()}
        with self.lock:
            self.requests.append((method, path, headers))

        if method != "OPTIONS" and headers.get("tus-resumable") != self.TUS_VERSION:
            return (412, {"Tus-Resumable": self.TUS_VERSION}, b"Invalid TUS version")

        upload_id = None
        if path.startswith(self.base_path + "/"):
            upload_id = path[len(self.base_path) + 1 :]

        if method == "OPTIONS":
            return self._handle_options()
        if method == "POST" and path == self.base_path:
            return self._handle_create(headers)
        if upload_id is None or upload_id not in self.uploads:
            return (404, {}, b"Upload not found")
        if method == "HEAD":
            return self._handle_head(upload_id)
        if method == "PATCH":
            return self._handle_patch(upload_id, headers, body)
        if method == "DELETE":
            del self.uploads[upload_id]
            return (204, {"Tus-Resumable": self.TUS_VERSION}, b"")
        return (404, {}, b"Not Found")

    def _handle_options(self) -> tuple[int, dict[str, str], bytes]:
        response_headers = {
            "Tus-Resumable": self.TUS_VERSION,
            "Tus-Version": self.TUS_VERSION,
            "Tus-Extension": ",".join(self.SUPPORTED_EXTENSIONS),
        }
        if self.max_size > 0:
            response_headers["Tus-Max-Size"] = str(self.max_size)
        return (204, response_headers, b"")

    def _handle_create(self, headers: dict[str, str]) -> tuple[int, dict[str, str], bytes]:
        upload_length = headers.get("upload-length", "")
        if not upload_length.isdigit():
            return (400, {}, b"Invalid Upload-Length header")
        if self.max_size > 0 and int(upload_length) > self.max_size:
            return (413, {}, b"Upload exceeds maximum size")

        upload_id = uuid.uuid4().hex
        self.uploads[upload_id] = {
            "length": int(upload_length),
            "data": bytearray(),
            "metadata": headers.get("upload-metadata", ""),
        }
        response_headers = {
            "Tus-Resumable": self.TUS_VERSION,
            "Location": f"{self.base_path}/{upload_id}",
        }
        return (201, response_headers, b"")

    def _handle_head(self, upload_id: str) -> tuple[int, dict[str, str], bytes]:
        upload = self.uploads[upload_id]
        response_headers = {
            "Tus-Resumable": self.TUS_VERSION,
            "Upload-Offset": str(len(upload["data"])),
            "Upload-Length": str(upload["length"]),
            "Cache-Control": "no-store",
        }
        return (200, response_headers, b"")

    def _handle_patch(
        self, upload_id: str, headers: dict[str, str], body: bytes
    ) -> tuple[int, dict[str, str], bytes]:
        upload = self.uploads[upload_id]
        if headers.get("content-type") != "application/offset+octet-stream":
            return (415, {}, b"Invalid Content-Type")
        if headers.get("upload-offset") != str(len(upload["data"])):
            return (409, {}, b"Upload-Offset mismatch")
        if len(upload["data"]) + len(body) > upload["length"]:
            return (413, {}, b"Upload exceeds declared length")

        upload["data"].extend(body)
        response_headers = {
            "Tus-Resumable": self.TUS_VERSION,
            "Upload-Offset": str(len(upload["data"])),
        }
        return (204, response_headers, b"")


class TusRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler delegating to an InMemoryTusServer."""

    tus_server: InMemoryTusServer = None

    def do_OPTIONS(self) -> None:
        self._handle_request("OPTIONS")

    def do_POST(self) -> None:
        self._handle_request("POST")

    def do_HEAD(self) -> None:
        self._handle_request("HEAD")

    def do_PATCH(self) -> None:
        self._handle_request("PATCH")

    def do_DELETE(self) -> None:
        self._handle_request("DELETE")

    def _handle_request(self, method: str) -> None:
        body = b""
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length > 0:
            body = self.rfile.read(content_length)

        status, response_headers, response_body = self.tus_server.handle_request(
            method, self.path, dict(self.headers), body
        )

        self.send_response(status)
        for key, value in response_headers.items():
            self.send_header(key, value)
        if method != "HEAD":
            self.send_header("Content-Length", str(len(response_body)))
        self.end_headers()
        if response_body and method != "HEAD":
            self.wfile.write(response_body)

    def log_message(self, format: str, *args: Any) -> None:
        """Suppress default logging."""
        pass


class ScriptedTransport(Transport):
    """Transport returning queued responses and recording every request."""

    def __init__(
        self,
        responses: Optional[list[Union[HttpResponse, Exception, Callable]]] = None,
    ):
        self.responses = list(responses or [])
        self.requests: list[HttpRequest] = []

    def queue(self, status_code: int, headers: Optional[dict] = None, body: bytes = b""):
        self.responses.append(HttpResponse(status_code, headers or {}, body))
        return self

    def send(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def make_file(temp_dir):
    """Factory writing a file of the given content into the temp directory."""

    def _make_file(content: bytes, name: str = "test_file.bin") -> str:
        file_path = os.path.join(temp_dir, name)
        with open(file_path, "wb") as f:
            f.write(content)
        return file_path

    return _make_file


@pytest.fixture
def test_file(make_file):
    """Create a 128-byte test file."""
    return make_file(bytes(range(128)))


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def tus_server():
    """Start an in-process TUS server."""
    tus_server = InMemoryTusServer(base_path="/files")

    class CustomHandler(TusRequestHandler):
        pass

    CustomHandler.tus_server = tus_server

    server = HTTPServer(("127.0.0.1", 0), CustomHandler)
    port = server.server_address[1]
    thread = Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield f"http://127.0.0.1:{port}/files", tus_server

    server.shutdown()
    server.server_close()

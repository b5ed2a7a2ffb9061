"""HTTP transport used by the TUS client."""

import http.client
import logging
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from tus_client.exceptions import TusTransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpRequest:
    """Request descriptor produced by an Operation."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and body returned by a Transport."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Transport(ABC):
    """Executes a request and returns the server's answer.

    Implementations return every HTTP status as an HttpResponse and raise
    TusTransportError only when no response could be obtained.
    """

    @abstractmethod
    def send(self, request: HttpRequest) -> HttpResponse:
        """Execute ``request``."""
        pass


class UrllibTransport(Transport):
    """Transport built on urllib.request."""

    def __init__(self, timeout: Optional[float] = None, verify_tls_cert: bool = True):
        """Initialize the transport.

        Args:
            timeout: Socket timeout in seconds (default: no timeout)
            verify_tls_cert: Verify TLS certificates (default: True)
        """
        self.timeout = timeout
        self.verify_tls_cert = verify_tls_cert
        self._ssl_context = None
        if not verify_tls_cert:
            self._ssl_context = ssl.create_default_context()
            self._ssl_context.check_hostname = False
            self._ssl_context.verify_mode = ssl.CERT_NONE

    def send(self, request: HttpRequest) -> HttpResponse:
        """Execute ``request`` with urlopen.

        Raises:
            TusTransportError: If the URL is unusable, the connection fails or
                the server answers with something that is not HTTP
        """
        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self._ssl_context is not None:
            kwargs["context"] = self._ssl_context

        logger.debug(f"{request.method} {request.url}")
        try:
            req = Request(
                request.url,
                data=request.body,
                headers=request.headers,
                method=request.method,
            )
            with urlopen(req, **kwargs) as response:
                return HttpResponse(
                    status_code=response.status,
                    headers=dict(response.headers.items()),
                    body=response.read(),
                )
        except HTTPError as e:
            try:
                body = e.read() or b""
            except (OSError, http.client.HTTPException):
                body = b""
            return HttpResponse(
                status_code=e.code,
                headers=dict(e.headers.items()) if e.headers else {},
                body=body,
            )
        except (URLError, OSError, ValueError, http.client.HTTPException) as e:
            raise TusTransportError(
                f"{request.method} {request.url} failed: {getattr(e, 'reason', e)}"
            ) from e

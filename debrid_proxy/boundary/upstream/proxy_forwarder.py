"""
Generic request forwarder for the Debrid-Link API.

Relays method, headers, query and body to a fixed upstream base URL,
dropping hop-by-hop headers and injecting the server's bearer token when
the client sends no Authorization header. Upstream status codes are
relayed unchanged; only transport failures become errors.

Dependencies: httpx
System role: Proxy forwarder between API routes and the upstream service
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import quote

import httpx

from debrid_proxy.core.exceptions import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
    }
)

# Length is recomputed per request. The upstream is only offered codings
# httpx always decodes, so relayed bodies arrive decoded.
_REQUEST_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "accept-encoding"}
_RESPONSE_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"content-length"}

UPSTREAM_ACCEPT_ENCODING = "gzip, deflate"
DECODED_CONTENT_CODINGS = frozenset({"gzip", "deflate", "identity"})

METHODS_WITHOUT_BODY = frozenset({"GET", "HEAD"})

_PLACEHOLDER = re.compile(r":([A-Za-z0-9_]+)")

HeaderList = list[tuple[str, str]]
PathTemplate = str | Callable[[Mapping[str, Any]], str] | None


def build_upstream_path(template: PathTemplate, params: Mapping[str, Any] | None = None) -> str:
    """
    Resolve an upstream path template.

    Args:
        template: "/seedbox/:idTorrent/zip" style string, or a callable
            receiving the params
        params: Path parameters captured from the inbound route

    Returns:
        str: Path with every known placeholder replaced by its URL-encoded
            value; unknown placeholders are left as ":name"
    """
    params = params or {}
    if callable(template):
        return template(params)
    if not template:
        return ""

    def _substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in params or params[key] is None:
            return f":{key}"
        return quote(str(params[key]), safe="!'()*")

    return _PLACEHOLDER.sub(_substitute, template)


def normalize_token(value: str | None) -> str:
    """Prefix "Bearer " unless the value already carries it."""
    if not value:
        return ""
    return value if value.lower().startswith("bearer ") else f"Bearer {value}"


def _header_items(headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> Iterable[tuple[str, str]]:
    if isinstance(headers, httpx.Headers):
        return headers.multi_items()
    if isinstance(headers, Mapping):
        return headers.items()
    return headers


def build_forward_headers(
    incoming: Mapping[str, str] | Iterable[tuple[str, str]],
    allow_env_token: bool,
    default_token: str = "",
) -> HeaderList:
    """
    Select the inbound headers that are sent upstream.

    Args:
        incoming: Client headers (mapping or list of pairs, duplicates kept)
        allow_env_token: Whether the server token may be injected
        default_token: Server-side API token

    Returns:
        HeaderList: Filtered header pairs, plus authorization if injected
    """
    headers: HeaderList = []
    for key, value in _header_items(incoming):
        if not value or key.lower() in _REQUEST_SKIP_HEADERS:
            continue
        headers.append((key, value))

    has_authorization = any(key.lower() == "authorization" for key, _ in headers)
    if allow_env_token and default_token and not has_authorization:
        headers.append(("authorization", normalize_token(default_token)))
    return headers


def is_decoded_encoding(value: str) -> bool:
    """Whether httpx decoded a body sent with this Content-Encoding."""
    codings = [c.strip().lower() for c in value.split(",") if c.strip()]
    return all(c in DECODED_CONTENT_CODINGS for c in codings)


def pick_response_headers(source: Mapping[str, str] | Iterable[tuple[str, str]]) -> HeaderList:
    """
    Upstream response headers that are safe to relay to the client.

    Content-Encoding is dropped when httpx already decoded the body and
    kept for codings it passed through untouched.
    """
    headers: HeaderList = []
    for key, value in _header_items(source):
        lowered = key.lower()
        if not value or lowered in _RESPONSE_SKIP_HEADERS:
            continue
        if lowered == "content-encoding" and is_decoded_encoding(value):
            continue
        headers.append((key, value))
    return headers


def should_send_body(method: str) -> bool:
    return method.upper() not in METHODS_WITHOUT_BODY


@dataclass(frozen=True)
class ProxyRoute:
    """Forwarding policy for one exposed endpoint."""

    base_url: str
    upstream_path: PathTemplate = None
    allow_env_token: bool = True
    summary: str | None = None
    timeout_ms: int | None = None

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url is required to create a proxy handler")


@dataclass(frozen=True)
class UpstreamRequest:
    """Inbound request data the forwarder needs."""

    method: str
    path: str
    path_params: Mapping[str, Any]
    query_params: list[tuple[str, str]]
    headers: HeaderList
    body: bytes = b""


class ProxyForwarder:
    """Sends inbound requests to the upstream API with a shared httpx client."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        default_token: str = "",
        default_timeout_ms: int = 15000,
    ) -> None:
        """
        Initialize the forwarder.

        Args:
            client: Shared async HTTP client
            default_token: API token injected for routes that allow it
            default_timeout_ms: Timeout used when a route sets none
        """
        self._client = client
        self._default_token = default_token
        self._default_timeout_ms = default_timeout_ms

    def build_url(self, route: ProxyRoute, request: UpstreamRequest) -> str:
        template = route.upstream_path if route.upstream_path is not None else request.path
        return f"{route.base_url.rstrip('/')}{build_upstream_path(template, request.path_params)}"

    async def forward(self, route: ProxyRoute, request: UpstreamRequest) -> httpx.Response:
        """
        Relay a request upstream and return the raw upstream response.

        Args:
            route: Target base URL and forwarding policy
            request: Inbound request data

        Returns:
            httpx.Response: Upstream response, whatever its status

        Raises:
            UpstreamTimeoutError: If the upstream does not answer in time
            UpstreamError: On connection or protocol failures
        """
        url = self.build_url(route, request)
        headers = build_forward_headers(
            request.headers, route.allow_env_token, self._default_token
        )
        headers.append(("accept-encoding", UPSTREAM_ACCEPT_ENCODING))
        content = (
            request.body if should_send_body(request.method) and request.body else None
        )
        timeout = (route.timeout_ms or self._default_timeout_ms) / 1000

        try:
            response = await self._client.request(
                request.method,
                url,
                params=request.query_params,
                headers=headers,
                content=content,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning(
                "Upstream request timed out",
                extra={"url": url, "method": request.method, "timeout_s": timeout},
            )
            raise UpstreamTimeoutError("Upstream request timed out", url=url) from e
        except httpx.HTTPError as e:
            error_text = str(e) or type(e).__name__
            message = f"{route.summary} failed: {error_text}" if route.summary else error_text
            logger.error(
                "Upstream request failed",
                extra={"url": url, "method": request.method, "error_type": type(e).__name__},
            )
            raise UpstreamError(message, url=url) from e

        logger.debug(
            "Upstream responded",
            extra={"url": url, "method": request.method, "status_code": response.status_code},
        )
        return response

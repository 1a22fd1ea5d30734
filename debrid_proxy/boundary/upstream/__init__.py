"""Upstream Debrid-Link API: endpoint table and request forwarder."""

from debrid_proxy.boundary.upstream.endpoints import (
    ALL_METHODS,
    ENDPOINT_GROUPS,
    EndpointGroup,
    EndpointSpec,
    to_route_path,
)
from debrid_proxy.boundary.upstream.proxy_forwarder import (
    ProxyForwarder,
    ProxyRoute,
    UpstreamRequest,
    build_forward_headers,
    build_upstream_path,
    pick_response_headers,
)

__all__ = [
    "ALL_METHODS",
    "ENDPOINT_GROUPS",
    "EndpointGroup",
    "EndpointSpec",
    "to_route_path",
    "ProxyForwarder",
    "ProxyRoute",
    "UpstreamRequest",
    "build_forward_headers",
    "build_upstream_path",
    "pick_response_headers",
]

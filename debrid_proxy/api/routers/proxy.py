"""
Proxy routes for the Debrid-Link API.

Registers one route per endpoint in the routing table. Each handler
relays the request through ProxyForwarder and returns the upstream
status, headers and body unchanged.

Dependencies: fastapi, debrid_proxy.boundary.upstream
System role: Pass-through HTTP API in front of the upstream service
"""

import logging

from fastapi import Depends, FastAPI, Request, Response

from debrid_proxy.api.deps.dependencies import get_proxy_forwarder
from debrid_proxy.boundary.upstream import (
    ALL_METHODS,
    ENDPOINT_GROUPS,
    EndpointGroup,
    EndpointSpec,
    ProxyForwarder,
    ProxyRoute,
    UpstreamRequest,
    pick_response_headers,
    to_route_path,
)
from debrid_proxy.configs import Settings

logger = logging.getLogger(__name__)


def create_proxy_handler(route: ProxyRoute):
    """
    Build the FastAPI endpoint for one proxy route.

    Args:
        route: Base URL and forwarding policy

    Returns:
        Async endpoint function relaying the request
    """

    async def proxy_handler(
        request: Request,
        forwarder: ProxyForwarder = Depends(get_proxy_forwarder),
    ) -> Response:
        upstream = await forwarder.forward(
            route,
            UpstreamRequest(
                method=request.method,
                path=request.url.path,
                path_params=dict(request.path_params),
                query_params=request.query_params.multi_items(),
                headers=request.headers.items(),
                body=await request.body(),
            ),
        )

        response = Response(content=upstream.content, status_code=upstream.status_code)
        for key, value in pick_response_headers(upstream.headers):
            response.headers.append(key, value)
        return response

    return proxy_handler


def _base_urls(settings: Settings) -> dict[str, str]:
    return {
        "api": settings.upstream.api_base_url,
        "oauth": settings.upstream.oauth_base_url,
    }


def _resolve_methods(endpoint: EndpointSpec) -> list[str]:
    methods = []
    for method in endpoint.methods or ALL_METHODS:
        normalized = method.upper()
        if normalized not in ALL_METHODS:
            logger.warning(
                "Unsupported HTTP method, skipping",
                extra={"method": method, "path": endpoint.path},
            )
            continue
        methods.append(normalized)
    return methods


def register_endpoint(
    app: FastAPI, base_url: str, endpoint: EndpointSpec, group: EndpointGroup
) -> None:
    """Add one endpoint's proxy route to the app."""
    route = ProxyRoute(
        base_url=base_url,
        upstream_path=endpoint.upstream_path or endpoint.path,
        allow_env_token=(
            endpoint.allow_env_token
            if endpoint.allow_env_token is not None
            else group.allow_env_token
        ),
        summary=endpoint.summary,
        timeout_ms=endpoint.timeout_ms,
    )
    methods = _resolve_methods(endpoint)
    if not methods:
        return

    app.add_api_route(
        to_route_path(endpoint.path),
        create_proxy_handler(route),
        methods=methods,
        summary=endpoint.summary,
        tags=[f"proxy:{group.base}"],
    )


def register_proxy_routes(app: FastAPI, settings: Settings) -> int:
    """
    Register every endpoint group whose base URL is configured.

    Returns:
        int: Number of endpoints registered
    """
    base_urls = _base_urls(settings)
    registered = 0

    for group in ENDPOINT_GROUPS:
        base_url = base_urls.get(group.base)
        if not base_url:
            logger.warning("No base URL configured for group", extra={"group": group.base})
            continue

        for endpoint in group.endpoints:
            register_endpoint(app, base_url, endpoint, group)
            registered += 1

    logger.info("Proxy routes registered", extra={"count": registered})
    return registered

"""
Upstream endpoint routing table.

Declares which Debrid-Link endpoints the proxy exposes, grouped by the
base URL they forward to. Paths use ":name" placeholders; the same
template doubles as the upstream path unless upstream_path is given.

Dependencies: dataclasses (stdlib)
System role: Static route table consumed by the proxy router
"""

import re
from dataclasses import dataclass

ALL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

_PLACEHOLDER = re.compile(r":([A-Za-z0-9_]+)")


@dataclass(frozen=True)
class EndpointSpec:
    """One proxied endpoint."""

    path: str
    summary: str
    upstream_path: str | None = None
    methods: tuple[str, ...] = ()
    allow_env_token: bool | None = None
    timeout_ms: int | None = None


@dataclass(frozen=True)
class EndpointGroup:
    """Endpoints sharing a base URL key and token policy."""

    base: str
    endpoints: tuple[EndpointSpec, ...]
    allow_env_token: bool = True


def to_route_path(path: str) -> str:
    """Convert "/seedbox/:idTorrent/zip" into "/seedbox/{idTorrent}/zip"."""
    return _PLACEHOLDER.sub(r"{\1}", path)


API_ENDPOINTS = (
    EndpointSpec("/account/infos", "Get user infos"),
    EndpointSpec("/account/update", "Update user infos"),
    EndpointSpec("/seedbox/list", "List torrents"),
    EndpointSpec("/seedbox/activity", "Get torrents activity"),
    EndpointSpec("/seedbox/add", "Add a torrent"),
    EndpointSpec("/seedbox/:idTorrents/remove", "Remove one or more torrents"),
    EndpointSpec("/seedbox/:idTorrent/zip", "Create a zip archive for torrent files"),
    EndpointSpec("/seedbox/:idTorrent/config", "Configure a waiting torrent"),
    EndpointSpec("/seedbox/limits", "Get seedbox limits and usage"),
    EndpointSpec("/seedbox/rss/list", "List RSS feeds and items"),
    EndpointSpec("/seedbox/rss/add", "Add an RSS feed"),
    EndpointSpec("/seedbox/rss/:id/test", "Test an RSS feed"),
    EndpointSpec("/seedbox/rss/:id/update", "Update an RSS feed configuration"),
    EndpointSpec("/seedbox/rss/:ids/remove", "Remove RSS feeds"),
    EndpointSpec("/seedbox/rss/limits", "Get RSS limits and usage"),
    EndpointSpec("/seedbox/rss/limits/compare", "Compare RSS limits by account type"),
    EndpointSpec("/downloader/list", "List downloader links"),
    EndpointSpec("/downloader/add", "Add downloader links"),
    EndpointSpec("/downloader/:idLinks/remove", "Remove downloader links"),
    EndpointSpec("/downloader/hosts", "List supported hosts"),
    EndpointSpec("/downloader/domains", "List supported domains"),
    EndpointSpec("/downloader/regex", "List regex rules and hostnames (deprecated)"),
    EndpointSpec("/downloader/limits", "Get downloader limits and usage"),
    EndpointSpec("/files/:idParent/list", "List files under a folder"),
    EndpointSpec("/stream/transcode/add", "Create a transcode task"),
    EndpointSpec("/stream/transcode/:id/infos", "Get transcode information"),
)

OAUTH_ENDPOINTS = (
    EndpointSpec(
        "/oauth/token",
        "Create, refresh or exchange OAuth tokens",
        upstream_path="/oauth/token",
    ),
    EndpointSpec(
        "/oauth/device/code",
        "Create a device code for limited input devices",
        upstream_path="/oauth/device/code",
    ),
    EndpointSpec(
        "/oauth/revoke",
        "Revoke access or refresh tokens",
        upstream_path="/oauth/revoke",
    ),
)

ENDPOINT_GROUPS: tuple[EndpointGroup, ...] = (
    EndpointGroup(base="api", endpoints=API_ENDPOINTS, allow_env_token=True),
    # OAuth calls carry client credentials; never attach the server token.
    EndpointGroup(base="oauth", endpoints=OAUTH_ENDPOINTS, allow_env_token=False),
)

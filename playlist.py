import logging
import re
from urllib.parse import quote

import requests as http_requests
from flask import Response

from relay import (
    UpstreamClient,
    is_success,
    proxy_error_response,
    upstream_error_response,
)
from routing import RESOURCE_PATH, ResolvedTarget

logger = logging.getLogger(__name__)

PLAYLIST_CONTENT_TYPE = "application/vnd.apple.mpegurl; charset=utf-8"

_LINE_BREAK = re.compile(r"\r?\n")
_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def encode_component(value: str) -> str:
    # Same unreserved set as JavaScript's encodeURIComponent.
    return quote(value, safe="!~*'()")


def rewrite_line(line: str, channel: str, origin: str) -> str:
    if not line or line.startswith("#"):
        return line
    if _ABSOLUTE_URL.match(line):
        return f"{origin}{RESOURCE_PATH}?url={encode_component(line)}"
    return (
        f"{origin}{RESOURCE_PATH}?channel={encode_component(channel)}"
        f"&uri={encode_component(line)}"
    )


def rewrite_playlist(text: str, channel: str, origin: str) -> str:
    """Point every segment or variant line of an HLS manifest back at us.

    Directive and blank lines pass through untouched. Absolute URLs become
    ``/resource?url=...``; anything else is treated as relative to the
    channel and becomes ``/resource?channel=...&uri=...``. Output lines are
    always joined with ``\\n``.
    """
    return "\n".join(
        rewrite_line(line, channel, origin) for line in _LINE_BREAK.split(text)
    )


def proxy_playlist(client: UpstreamClient, target: ResolvedTarget, origin: str) -> Response:
    try:
        upstream = client.fetch(target.url)
    except http_requests.RequestException:
        logger.exception("Playlist error for %s", target.label)
        return proxy_error_response()

    if not is_success(upstream.status_code):
        return upstream_error_response(upstream, target)

    try:
        text = upstream.content.decode("utf-8-sig", errors="replace")
    except http_requests.RequestException:
        logger.exception("Playlist read failed for %s", target.label)
        return proxy_error_response()
    finally:
        upstream.close()

    logger.debug("Rewriting playlist for %s", target.label)
    return Response(
        rewrite_playlist(text, target.channel, origin),
        status=upstream.status_code,
        content_type=PLAYLIST_CONTENT_TYPE,
    )

"""Classify inbound requests and resolve them to upstream URLs."""

import enum
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from settings import Settings

RESOURCE_PATH = "/resource"


class RequestKind(enum.Enum):
    PREFLIGHT = "preflight"
    RESOURCE_ABSOLUTE = "resource-absolute"
    RESOURCE_CHANNEL_RELATIVE = "resource-channel-relative"
    BAD_RESOURCE = "bad-resource"
    PLAYLIST_BY_CHANNEL = "playlist-by-channel"
    UNMATCHED = "unmatched"


class BadResourceRequest(ValueError):
    pass


@dataclass(frozen=True)
class ResolvedTarget:
    url: str
    kind: RequestKind
    channel: Optional[str] = None
    # Safe to log: never contains the upstream credentials.
    label: str = ""


def classify(method: str, path: str, args) -> RequestKind:
    """Map the request shape to exactly one kind.

    ``url`` beats ``channel``+``uri``, which beats a bare ``channel``.
    A request to ``/resource`` that carries neither resource form is a bad
    resource request rather than a playlist request.
    """
    if method == "OPTIONS":
        return RequestKind.PREFLIGHT
    if "url" in args:
        return RequestKind.RESOURCE_ABSOLUTE
    if "channel" in args and "uri" in args:
        return RequestKind.RESOURCE_CHANNEL_RELATIVE
    if path == RESOURCE_PATH:
        return RequestKind.BAD_RESOURCE
    if args.get("channel"):
        return RequestKind.PLAYLIST_BY_CHANNEL
    return RequestKind.UNMATCHED


def _check_absolute(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise BadResourceRequest(f"not an absolute http(s) URL: {url!r}")
    return url


def resolve(kind: RequestKind, args, settings: Settings) -> ResolvedTarget:
    if kind is RequestKind.RESOURCE_ABSOLUTE:
        url = _check_absolute(args["url"])
        return ResolvedTarget(url, kind, label=url)

    if kind is RequestKind.RESOURCE_CHANNEL_RELATIVE:
        channel, uri = args["channel"], args["uri"]
        return ResolvedTarget(
            f"{settings.live_base()}/{channel}/{uri}",
            kind,
            channel=channel,
            label=f"channel {channel} uri {uri}",
        )

    if kind is RequestKind.PLAYLIST_BY_CHANNEL:
        channel = args["channel"]
        return ResolvedTarget(
            f"{settings.live_base()}/{channel}.m3u8",
            kind,
            channel=channel,
            label=f"channel {channel} playlist",
        )

    raise BadResourceRequest(f"no upstream target for {kind.value} request")

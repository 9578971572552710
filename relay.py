import logging

import requests as http_requests
from flask import Response

from routing import ResolvedTarget
from settings import Settings

logger = logging.getLogger(__name__)


class UpstreamClient:
    """One shared session carrying the fixed outbound headers."""

    def __init__(self, settings: Settings, session=None):
        self.settings = settings
        self.session = session if session is not None else http_requests.Session()
        self.session.headers.update(
            {"User-Agent": settings.user_agent, "Referer": settings.referer}
        )

    def fetch(self, url: str):
        return self.session.get(url, stream=True, timeout=self.settings.timeout)


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def text_response(body: str, status: int) -> Response:
    return Response(body, status=status, content_type="text/plain")


def proxy_error_response() -> Response:
    return text_response("Internal proxy error", 500)


def upstream_error_response(upstream, target: ResolvedTarget) -> Response:
    """Relay a non-2xx upstream answer as plain text with the same status."""
    status = upstream.status_code
    try:
        body = upstream.content.decode("utf-8-sig", errors="replace")
    except http_requests.RequestException:
        body = ""
    finally:
        upstream.close()
    logger.warning("Upstream returned %s for %s", status, target.label)
    return text_response(body or f"Upstream {status}", status)


def _copy_body(upstream, target: ResolvedTarget, chunk_size: int):
    # Closing this generator (client went away) also releases the upstream.
    try:
        for chunk in upstream.iter_content(chunk_size=chunk_size):
            if chunk:
                yield chunk
    except http_requests.RequestException:
        logger.exception("Stream interrupted for %s", target.label)
    finally:
        upstream.close()


def relay(client: UpstreamClient, target: ResolvedTarget) -> Response:
    """Fetch ``target`` once and stream the body through as it arrives."""
    try:
        upstream = client.fetch(target.url)
    except http_requests.RequestException:
        logger.exception("Resource error for %s", target.label)
        return proxy_error_response()

    if not is_success(upstream.status_code):
        return upstream_error_response(upstream, target)

    content_type = upstream.headers.get("Content-Type")
    response = Response(
        _copy_body(upstream, target, client.settings.chunk_size),
        status=upstream.status_code,
        content_type=content_type,
    )
    if not content_type:
        del response.headers["Content-Type"]
    response.call_on_close(upstream.close)
    return response

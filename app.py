import logging
import os
from typing import Optional

from flask import Flask, Response, request
from werkzeug.exceptions import InternalServerError

from playlist import proxy_playlist
from relay import UpstreamClient, proxy_error_response, relay, text_response
from routing import BadResourceRequest, RequestKind, classify, resolve
from settings import Settings

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}

METHODS = ["GET", "HEAD", "OPTIONS"]


def public_origin() -> str:
    """Scheme and host of this proxy as the client sees it."""
    proto = request.headers.get("X-Forwarded-Proto", "").split(",")[0].strip()
    return f"{proto or 'https'}://{request.host}"


def create_app(settings: Optional[Settings] = None, session=None) -> Flask:
    settings = settings or Settings.from_env()
    client = UpstreamClient(settings, session)

    app = Flask(__name__)

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    @app.errorhandler(InternalServerError)
    def internal_error(e):
        logger.error("Unhandled error on %s: %r", request.path, e.original_exception)
        return proxy_error_response()

    @app.route("/", defaults={"path": ""}, methods=METHODS, provide_automatic_options=False)
    @app.route("/<path:path>", methods=METHODS, provide_automatic_options=False)
    def proxy(path):
        """Single entry point: every request shape is classified here."""
        kind = classify(request.method, request.path, request.args)

        if kind is RequestKind.PREFLIGHT:
            return Response(status=204)
        if kind is RequestKind.UNMATCHED:
            return text_response("Not found", 404)

        try:
            target = resolve(kind, request.args, settings)
        except BadResourceRequest as e:
            logger.info("Rejected %s: %s", request.path, e)
            return text_response("Bad resource request", 400)

        if kind is RequestKind.PLAYLIST_BY_CHANNEL:
            return proxy_playlist(client, target, public_origin())
        return relay(client, target)

    return app


app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8080)), threaded=True)

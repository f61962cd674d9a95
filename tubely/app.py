"""The WSGI application and the command that serves it."""

from __future__ import annotations

import argparse
import logging
import sqlite3
import uuid

from werkzeug.exceptions import HTTPException, NotFound
from werkzeug.routing import Map, Rule
from werkzeug.serving import run_simple
from werkzeug.utils import send_from_directory
from werkzeug.wrappers import Request, Response

from .config import Config, ConfigError, load_config
from .database import Database
from .media import ensure_assets_dir
from .responses import ApiError, error_response, json_response

logger = logging.getLogger(__name__)


def _serve_file(root: str, path: str, environ) -> Response:
    if path == "" or path.endswith("/"):
        path += "index.html"
    return send_from_directory(root, path, environ)


def create_app(config: Config, db: Database):
    """Build the WSGI application serving the site, assets and the API."""
    url_map = Map(
        [
            Rule("/app/", endpoint="site", defaults={"path": ""}),
            Rule("/app/<path:path>", endpoint="site"),
            Rule("/assets/", endpoint="assets", defaults={"path": ""}),
            Rule("/assets/<path:path>", endpoint="assets"),
            Rule("/api/videos/<video_id>", endpoint="video_get", methods=["GET"]),
            Rule("/admin/reset", endpoint="reset", methods=["POST"]),
        ]
    )

    def site(request: Request, path: str) -> Response:
        return _serve_file(config.filepath_root, path, request.environ)

    def assets(request: Request, path: str) -> Response:
        try:
            response = _serve_file(config.assets_root, path, request.environ)
        except NotFound as exc:
            response = exc.get_response(request.environ)
        response.headers["Cache-Control"] = "no-store"
        return response

    def video_get(request: Request, video_id: str) -> Response:
        try:
            vid = uuid.UUID(video_id)
        except ValueError as exc:
            raise ApiError(400, "Invalid video ID") from exc
        try:
            video = db.get_video(vid)
        except sqlite3.Error as exc:
            raise ApiError(404, "Couldn't get video") from exc
        if video is None:
            raise ApiError(404, "Couldn't get video")
        return json_response(200, video)

    def reset(request: Request) -> Response:
        if config.platform != "dev":
            return Response(
                "Reset is only allowed in dev environment.",
                status=403,
                mimetype="text/plain",
            )
        try:
            db.reset()
        except sqlite3.Error as exc:
            logger.error("%s", exc)
            raise ApiError(500, "Couldn't reset database") from exc
        return Response("Database reset to initial state", status=200, mimetype="text/plain")

    handlers = {
        "site": site,
        "assets": assets,
        "video_get": video_get,
        "reset": reset,
    }

    def application(environ, start_response):
        request = Request(environ)
        adapter = url_map.bind_to_environ(environ)
        try:
            endpoint, values = adapter.match()
            response = handlers[endpoint](request, **values)
        except ApiError as exc:
            response = error_response(exc.status, exc.message)
        except HTTPException as exc:
            response = exc.get_response(environ)
        return response(environ, start_response)

    return application


def main(argv=None) -> int:
    """Load the configuration and serve the application until stopped."""
    parser = argparse.ArgumentParser(prog="tubely", description="Serve the video site.")
    parser.add_argument("--env-file", default=".env", help="file of environment variables")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        config = load_config(args.env_file)
    except ConfigError as exc:
        logger.critical("%s", exc)
        return 1

    try:
        db = Database(config.db_path)
    except sqlite3.Error as exc:
        logger.critical("Couldn't connect to database: %s", exc)
        return 1

    with db:
        try:
            ensure_assets_dir(config.assets_root)
        except OSError as exc:
            logger.critical("Couldn't create assets directory: %s", exc)
            return 1
        app = create_app(config, db)
        logger.info("Serving on: http://localhost:%s/app/", config.port)
        run_simple("0.0.0.0", int(config.port), app)
    return 0
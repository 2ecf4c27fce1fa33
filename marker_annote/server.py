# marker_annote/server.py
"""
File-backed store for the video list.

  GET /api/videos  -> contents of the JSON data file
  PUT /api/videos  -> replace the data file with the posted JSON array
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from .config import DATA_FILE, LOG_FORMAT, LOG_LEVEL, SERVER_HOST, SERVER_PORT
from .persistence import atomic_write_json, read_json

logger = logging.getLogger(__name__)


def create_app(data_file: Optional[str] = None) -> Flask:
    app = Flask(__name__)
    CORS(app)
    app.config["DATA_FILE"] = data_file or DATA_FILE

    @app.route("/api/videos", methods=["GET"])
    def get_videos():
        path = app.config["DATA_FILE"]
        logger.info("[GET] reading %s", path)
        try:
            return jsonify(read_json(path))
        except (OSError, ValueError) as e:
            logger.error("Reading %s failed: %s", path, e)
            return jsonify({"message": "Could not read server data"}), 500

    @app.route("/api/videos", methods=["PUT"])
    def put_videos():
        videos = request.get_json(silent=True)
        if not isinstance(videos, list):
            return jsonify({"message": "Request body must be an array of videos"}), 400

        path = app.config["DATA_FILE"]
        try:
            atomic_write_json(path, videos)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Writing %s failed: %s", path, e)
            return jsonify({"message": "Could not save data on the server"}), 500

        logger.info("[PUT] saved %d videos to %s", len(videos), path)
        return jsonify({"message": "Saved"}), 200

    return app


def main() -> int:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    path = os.path.abspath(DATA_FILE)
    if not os.path.exists(path):
        atomic_write_json(path, [])
        logger.info("Created empty data file %s", path)
    app = create_app(path)
    logger.info("API server running at http://%s:%s", SERVER_HOST, SERVER_PORT)
    app.run(host=SERVER_HOST, port=SERVER_PORT)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

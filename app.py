"""Paint Visualizer — Flask JSON API."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

load_dotenv()

import log_setup
log_setup.configure(os.environ.get("PAINT_VIZ_LOG_LEVEL", "INFO"))

import config
from models import GenerationOptions
from visualizer_core import PaintVisualizer

log = logging.getLogger(__name__)


def _result_json(result) -> Dict[str, Any]:
    return result.model_dump(mode="json")


def _int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return int(raw)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(visualizer: Optional[PaintVisualizer] = None) -> Flask:
    if visualizer is None:
        visualizer = config.build_visualizer(config.load_settings(dotenv=False))

    app = Flask(__name__)
    CORS(app)
    app.config["VISUALIZER"] = visualizer

    # ------------------------------------------------------------------
    # Routes — Visualisation requests
    # ------------------------------------------------------------------

    @app.post("/api/visualize")
    def api_visualize():
        body = request.get_json(silent=True)
        if body is None:
            body = {}
        if not isinstance(body, dict):
            return jsonify({"error": "request body must be a JSON object"}), 400
        image = body.get("image")
        codes = body.get("product_codes")

        if not isinstance(image, str) or not image.strip():
            return jsonify({"error": "image is required"}), 400
        if not isinstance(codes, list) or not all(isinstance(c, str) for c in codes):
            return jsonify({"error": "product_codes must be a list of strings"}), 400
        try:
            options = GenerationOptions.model_validate(body.get("options") or {})
        except ValidationError as exc:
            return jsonify({"error": "invalid options", "details": exc.errors(include_url=False, include_context=False)}), 400

        try:
            if body.get("async"):
                request_id = visualizer.enqueue(image, codes, options)
                return jsonify({"request_id": request_id}), 202
            result = visualizer.submit(image, codes, options)
        except RuntimeError as exc:
            return jsonify({"error": str(exc)}), 503
        return jsonify(_result_json(result))

    @app.get("/api/results/<request_id>")
    def api_get_result(request_id: str):
        result = visualizer.get_result(request_id)
        if result is None:
            return jsonify({"error": "Not found"}), 404
        return jsonify(_result_json(result))

    @app.get("/api/results/<request_id>/status")
    def api_get_status(request_id: str):
        status = visualizer.get_status(request_id)
        code = 404 if status == "not_found" else 200
        return jsonify({"request_id": request_id, "status": status}), code

    @app.get("/api/stats")
    def api_stats():
        return jsonify(visualizer.stats().model_dump())

    # ------------------------------------------------------------------
    # Routes — Catalogue and backend discovery
    # ------------------------------------------------------------------

    @app.get("/api/paints")
    def api_paints():
        try:
            min_price = _int_arg("min_price")
            max_price = _int_arg("max_price")
        except ValueError:
            return jsonify({"error": "min_price and max_price must be integers"}), 400

        paints = visualizer.catalog.search(
            manufacturer=request.args.get("manufacturer") or None,
            paint_type=request.args.get("type") or None,
            color_name=request.args.get("color") or None,
            product_code=request.args.get("code") or None,
            min_price=min_price,
            max_price=max_price,
        )
        return jsonify([p.model_dump(mode="json") for p in paints])

    @app.get("/api/backend")
    def api_backend():
        backend = visualizer.backend
        return jsonify({
            "provider": backend.name if backend else None,
            "ready": visualizer.policy.backend_available(),
        })

    return app


app = create_app()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    print(f"\n  Paint Visualizer → http://localhost:{port}\n")
    try:
        app.run(host="0.0.0.0", port=port, debug=False, threaded=True)
    finally:
        app.config["VISUALIZER"].shutdown(cancel_in_flight=True)

"""Flask JSON API for Composition Generator.

The API exposes the same generation pipeline as the command line tool so a
browser front end or another service can request compositions over HTTP.

Features
--------
* ``GET /api/options`` lists every accepted key, mode, progression and style
  name so clients can build their own forms.
* ``POST /api/composition`` accepts a JSON object with
  :class:`~composition_generator.composition.CompositionSettings` fields plus
  an optional integer ``seed`` and returns the generated composition.
* **Request size limiting** through Flask's ``MAX_CONTENT_LENGTH``
  (``MAX_UPLOAD_MB`` environment variable, default 1 MB).
* **Per-IP rate limiting** when ``RATE_LIMIT_PER_MINUTE`` is set. Excess
  requests receive HTTP 429 with a ``Retry-After`` header.

Example
-------
Start a development server with::

    flask --app composition_generator.web_api run

and request a piece::

    curl -X POST localhost:5000/api/composition \
        -H "Content-Type: application/json" \
        -d '{"key": "E minor", "structure": "verse-chorus", "seed": 4}'
"""

# Modification Summary
# --------------------
# * Invalid settings are reported as ``400`` JSON errors using the same
#   messages as the CLI because both go through ``validate_settings``.
# * ``seed`` is removed from the payload before the remaining fields are
#   passed to ``CompositionSettings.from_dict``.

from __future__ import annotations

import logging
import math
import os
import random
from threading import Lock
from time import monotonic
from typing import Dict, Optional, Tuple

from flask import Flask, Response, current_app, jsonify, make_response, request

from .bass import BassPattern
from .composition import SECTION_ORDER, CompositionSettings, generate_composition
from .dynamics import Articulation, Dynamics
from .motif import MotifVariation
from .progression import available_progressions
from .rhythm_engine import ContourType, RhythmPattern
from .scales import available_keys, available_modes

__all__ = ["create_app", "rate_limit", "record_request", "REQUEST_LOG", "RATE_LIMIT_WINDOW"]

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_MB = 1

# Maps client IP to ``(window_start, count)`` for the current window. Guarded
# by ``REQUEST_LOCK`` because the development server is multi-threaded.
REQUEST_LOG: Dict[str, Tuple[float, int]] = {}
REQUEST_LOCK = Lock()

# Length of one rate-limit window in seconds, measured with ``monotonic``.
RATE_LIMIT_WINDOW = 60.0


def _configured_limit() -> Optional[int]:
    """Return the positive per-minute limit, or ``None`` when throttling is off.

    A missing or zero ``RATE_LIMIT_PER_MINUTE`` disables the limiter quietly.
    Malformed and negative values disable it with a warning.
    """

    limit_raw = current_app.config.get("RATE_LIMIT_PER_MINUTE")
    if limit_raw is None:
        return None
    try:
        limit = int(limit_raw)
    except (TypeError, ValueError):
        logger.warning(
            "Invalid RATE_LIMIT_PER_MINUTE %r; disabling rate limiting", limit_raw
        )
        return None
    if limit < 0:
        logger.warning(
            "RATE_LIMIT_PER_MINUTE must be positive; disabling rate limiting (received %r)",
            limit_raw,
        )
    return limit if limit > 0 else None


def record_request(ip_addr: str, limit: int, now: Optional[float] = None) -> Optional[int]:
    """Count one request from ``ip_addr`` against the current window.

    Windows older than :data:`RATE_LIMIT_WINDOW` are purged for every client
    first. Rejected requests are not counted.

    Returns:
        Optional[int]: Whole seconds until the client's window resets when
        ``limit`` is already used up, otherwise ``None``.
    """

    now = monotonic() if now is None else now
    with REQUEST_LOCK:
        for ip in [ip for ip, (start, _) in REQUEST_LOG.items() if now - start >= RATE_LIMIT_WINDOW]:
            del REQUEST_LOG[ip]
        window_start, count = REQUEST_LOG.get(ip_addr, (now, 0))
        if count >= limit:
            return math.ceil(max(0.0, RATE_LIMIT_WINDOW - (now - window_start)))
        REQUEST_LOG[ip_addr] = (window_start, count + 1)
    return None


def rate_limit() -> Optional[Response]:
    """``before_request`` hook answering throttled clients with HTTP 429.

    The response carries a JSON error like every other API failure and a
    ``Retry-After`` header with the seconds left in the client's window.
    """

    limit = _configured_limit()
    if limit is None:
        return None
    retry_after = record_request(request.remote_addr or "unknown", limit)
    if retry_after is None:
        return None
    logger.info("Rate limit reached for %s", request.remote_addr)
    response = make_response(jsonify({"error": "Too many requests"}), 429)
    response.headers["Retry-After"] = str(retry_after)
    return response


def _values(enum_cls):
    return [member.value for member in enum_cls]


def options():
    """Return the names accepted by ``POST /api/composition``."""

    return jsonify(
        {
            "keys": available_keys(),
            "modes": available_modes(),
            "progressions": available_progressions(),
            "rhythms": _values(RhythmPattern),
            "contours": _values(ContourType),
            "variations": _values(MotifVariation),
            "articulations": _values(Articulation),
            "dynamics": _values(Dynamics),
            "bass_patterns": _values(BassPattern),
            "sections": list(SECTION_ORDER),
        }
    )


def compose():
    """Generate a composition from the JSON request body."""

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Request body must be a JSON object."}), 400

    payload = dict(payload)
    seed = payload.pop("seed", None)
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        return jsonify({"error": "seed must be an integer."}), 400

    try:
        settings = CompositionSettings.from_dict(payload)
        piece = generate_composition(settings, rng=random.Random(seed))
    except ValueError as exc:
        logger.info("Rejected composition request: %s", exc)
        return jsonify({"error": str(exc)}), 400

    return jsonify(piece.to_dict())


def create_app() -> Flask:
    """Build and configure the Flask application instance.

    ``MAX_UPLOAD_MB`` bounds request bodies and ``RATE_LIMIT_PER_MINUTE``
    optionally throttles clients. Invalid environment values are logged and
    replaced by safe defaults.

    Returns:
        Flask: Configured application ready for use by a WSGI server.
    """

    app = Flask(__name__)

    try:
        max_mb = int(os.environ.get("MAX_UPLOAD_MB", str(DEFAULT_MAX_UPLOAD_MB)))
    except ValueError:
        max_mb = DEFAULT_MAX_UPLOAD_MB
        logger.warning("Invalid MAX_UPLOAD_MB value; defaulting to %d MB.", max_mb)
    rate_limit_env = os.environ.get("RATE_LIMIT_PER_MINUTE")
    try:
        rate_limit_per_minute = int(rate_limit_env) if rate_limit_env else None
    except ValueError:
        logger.warning(
            "RATE_LIMIT_PER_MINUTE must be an integer. Disabling rate limiting."
        )
        rate_limit_per_minute = None

    app.config["MAX_CONTENT_LENGTH"] = max_mb * 1024 * 1024
    app.config["RATE_LIMIT_PER_MINUTE"] = rate_limit_per_minute

    app.add_url_rule("/api/options", view_func=options, methods=["GET"])
    app.add_url_rule("/api/composition", view_func=compose, methods=["POST"])

    app.before_request(rate_limit)

    @app.errorhandler(413)
    def handle_request_too_large(_err):
        """Return a concise message when the client uploads too much data."""
        return jsonify({"error": "Request exceeds configured size limit."}), 413

    return app

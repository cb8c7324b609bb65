"""Rate limiter tests for the Flask JSON API.

Configuration errors must never throttle legitimate requests: a missing or
malformed limit disables the limiter and logs a warning instead of
returning HTTP 429.
"""

import logging
import threading

import pytest

pytest.importorskip("flask")

from composition_generator import web_api  # noqa: E402

app = web_api.create_app()


def setup_function() -> None:
    """Ensure each test runs with a fresh request log."""
    web_api.REQUEST_LOG.clear()


def test_rate_limit_enforces_limit() -> None:
    """Requests beyond the configured threshold should return HTTP 429."""
    app.config["RATE_LIMIT_PER_MINUTE"] = 1
    client = app.test_client()
    first = client.get("/api/options")
    assert first.status_code == 200
    assert "Retry-After" not in first.headers

    second = client.get("/api/options")
    assert second.status_code == 429
    assert int(second.headers["Retry-After"]) > 0
    assert second.get_json() == {"error": "Too many requests"}


def test_rate_limit_purges_expired_entries() -> None:
    """Entries older than the current window are removed before counting."""
    app.config["RATE_LIMIT_PER_MINUTE"] = 5
    old_time = web_api.monotonic() - (web_api.RATE_LIMIT_WINDOW * 2)
    web_api.REQUEST_LOG["stale"] = (old_time, 1)
    assert app.test_client().get("/api/options").status_code == 200
    assert "stale" not in web_api.REQUEST_LOG


def test_rate_limit_window_resets() -> None:
    """A client whose window has expired starts counting again."""
    app.config["RATE_LIMIT_PER_MINUTE"] = 1
    old_time = web_api.monotonic() - (web_api.RATE_LIMIT_WINDOW + 1)
    web_api.REQUEST_LOG["127.0.0.1"] = (old_time, 1)
    assert app.test_client().get("/api/options").status_code == 200


def test_rate_limit_thread_safety() -> None:
    """Concurrent requests increment counters without race conditions."""
    app.config["RATE_LIMIT_PER_MINUTE"] = 100
    ip_addr = "9.9.9.9"

    def hit() -> None:
        with app.test_request_context("/", environ_overrides={"REMOTE_ADDR": ip_addr}):
            assert web_api.rate_limit() is None

    threads = [threading.Thread(target=hit) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert web_api.REQUEST_LOG[ip_addr][1] == 10


def test_rate_limit_negative_config_disables(caplog) -> None:
    """Negative configuration values disable the limiter with a warning."""
    caplog.set_level(logging.WARNING)
    app.config["RATE_LIMIT_PER_MINUTE"] = -5
    client = app.test_client()
    assert client.get("/api/options").status_code == 200
    assert client.get("/api/options").status_code == 200
    assert "must be positive" in caplog.text


def test_rate_limit_invalid_config_disables(caplog) -> None:
    """Non-integer configuration values disable the limiter with a warning."""
    caplog.set_level(logging.WARNING)
    app.config["RATE_LIMIT_PER_MINUTE"] = "fast"
    assert app.test_client().get("/api/options").status_code == 200
    assert "Invalid RATE_LIMIT_PER_MINUTE" in caplog.text


def test_rate_limit_zero_disables_silently(caplog) -> None:
    caplog.set_level(logging.WARNING)
    app.config["RATE_LIMIT_PER_MINUTE"] = 0
    client = app.test_client()
    for _ in range(3):
        assert client.get("/api/options").status_code == 200
    assert "RATE_LIMIT_PER_MINUTE" not in caplog.text


def test_record_request_counts_per_window() -> None:
    """Rejected requests report the seconds left and are not counted."""
    assert web_api.record_request("1.2.3.4", 2, now=100.0) is None
    assert web_api.record_request("1.2.3.4", 2, now=110.0) is None
    assert web_api.record_request("1.2.3.4", 2, now=120.5) == 40
    assert web_api.REQUEST_LOG["1.2.3.4"] == (100.0, 2)
    assert web_api.record_request("1.2.3.4", 2, now=160.0) is None
    assert web_api.REQUEST_LOG["1.2.3.4"] == (160.0, 1)

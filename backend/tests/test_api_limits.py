"""Server-side caps applied by the /run endpoint."""

import logging

from fastapi.testclient import TestClient
from backend.app import main
from backend.app.main import _cap_settings, app

client = TestClient(app)


def test_api_loop_limit_through_run(monkeypatch):
    # lower the server-side ceiling; the client's larger request is clamped
    monkeypatch.setattr(main.interpreter, "max_loop", 5)
    payload = {"code": "jabaki (1) { }", "settings": {"max_loop": 1000000}}
    r = client.post("/run", json=payload)
    assert r.status_code == 200
    body = r.json()
    assert body["errors"] is not None
    assert body["errors"]["message"] == "loop exceeded iteration limit"


def test_api_output_limit_through_run(monkeypatch):
    monkeypatch.setattr(main.interpreter, "max_output_chars", 10)
    code = "\n".join(['mudrisu "abcdefghij"'] * 100)
    payload = {"code": code, "settings": {"max_output_chars": 1000000}}
    r = client.post("/run", json=payload)
    assert r.status_code == 200
    body = r.json()
    assert body["errors"]["message"] == "output limit exceeded"


def test_cap_settings_clamps():
    """Overly large client settings are lowered to the server's ceilings."""
    requested = {
        "max_loop": 10_000_000,
        "max_call_depth": 10_000,
        "max_output_chars": 10_000_000,
        "max_time_s": 10_000.0,
        "max_value_chars": 10_000_000,
    }
    capped = _cap_settings(requested)
    assert capped["max_loop"] == main.interpreter.max_loop
    assert capped["max_call_depth"] == main.interpreter.max_call_depth
    assert capped["max_output_chars"] == main.interpreter.max_output_chars
    assert capped["max_time_s"] == main.interpreter.max_time_s
    assert capped["max_value_chars"] == main.interpreter.max_value_chars


def test_cap_settings_keeps_smaller_requests():
    capped = _cap_settings({"max_loop": 7})
    assert capped["max_loop"] == 7
    assert capped["max_call_depth"] == main.interpreter.max_call_depth


def test_bad_settings_become_server_error():
    r = client.post("/run", json={"code": "mudrisu 1", "settings": {"max_loop": "many"}})
    assert r.status_code == 200
    assert r.json()["errors"]["code"] == "SERVER_ERROR"


def test_api_value_size_limit_through_run(monkeypatch):
    monkeypatch.setattr(main.interpreter, "max_value_chars", 20)
    payload = {"code": 'srsti s = "abcdef"\njabaki (1) { s = s + s }', "settings": {"max_value_chars": 1000000}}
    r = client.post("/run", json=payload)
    assert r.status_code == 200
    assert r.json()["errors"]["message"] == "value too large"


def test_configure_logging_leaves_root_logger_alone(monkeypatch):
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    package_logger = logging.getLogger("backend")
    previous = package_logger.level
    monkeypatch.setenv("INDISCRIPT_LOG_LEVEL", "debug")
    try:
        assert main.configure_logging() is package_logger
        assert package_logger.level == logging.DEBUG
        assert root.handlers == handlers
        assert root.level == level
    finally:
        package_logger.setLevel(previous)

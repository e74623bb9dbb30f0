"""FastAPI application entrypoints for Indiscript.

This module exposes HTTP endpoints used by the editor frontend and tests. It
keeps handlers intentionally small: each `/run` request constructs a fresh
`Interpreter` to avoid cross-request state sharing and calls the interpreter's
public API. Server-side caps are enforced to prevent clients from overriding
resource/safety limits.
"""

import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel

from ..indiscript.dialects import Dialect, keyword_reference, sample_programs
from ..indiscript.interpreter import Interpreter

logger = logging.getLogger(__name__)


def configure_logging() -> logging.Logger:
    """Apply `INDISCRIPT_LOG_LEVEL` to the project's own loggers.

    Only the level of the `backend` logger is set; handlers and the root
    logger are left to whatever server hosts the app.
    """
    package_logger = logging.getLogger("backend")
    package_logger.setLevel(os.environ.get("INDISCRIPT_LOG_LEVEL", "WARNING").upper())
    return package_logger


configure_logging()

app = FastAPI(title="Indiscript API", version="0.1")

# Server-side ceilings for per-run tunables. Tests may lower these.
interpreter = Interpreter()


def _cap_settings(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Enforce server-side safe caps for runtime tunables.

    Clients may include a `settings` object with per-run tunables. The server
    must not trust these entirely; `_cap_settings` uses the limits on the
    module-level `interpreter` as ceilings and then applies the client's
    requested values up to those ceilings.

    Returns a dict suitable for passing directly into `Interpreter.run`.
    """
    safe = {
        "max_loop": interpreter.max_loop,
        "max_call_depth": interpreter.max_call_depth,
        "max_output_chars": interpreter.max_output_chars,
        "max_time_s": interpreter.max_time_s,
        "max_value_chars": interpreter.max_value_chars,
    }
    if not settings:
        return safe
    caps = {}
    # coerce and clamp numeric values to the server's safe maximums
    caps["max_loop"] = min(int(settings.get("max_loop", safe["max_loop"])), safe["max_loop"])
    caps["max_call_depth"] = min(int(settings.get("max_call_depth", safe["max_call_depth"])), safe["max_call_depth"])
    caps["max_output_chars"] = min(int(settings.get("max_output_chars", safe["max_output_chars"])), safe["max_output_chars"])
    caps["max_time_s"] = min(float(settings.get("max_time_s", safe["max_time_s"])), safe["max_time_s"])
    caps["max_value_chars"] = min(int(settings.get("max_value_chars", safe["max_value_chars"])), safe["max_value_chars"])
    return caps


class RunRequest(BaseModel):
    """Pydantic model for the `/run` request body.

    Fields:
        code: Indiscript source text.
        dialect: keyword dialect the code is written in.
        settings: optional runtime tunables; will be capped server-side.
    """
    code: str
    dialect: Dialect = Dialect.KANNADA
    settings: Optional[Dict[str, Any]] = None


@app.post("/run")
def run_code(req: RunRequest):
    """Handle a code execution request.

    This endpoint builds a fresh `Interpreter` instance per-request to ensure
    isolation, applies the capped settings and calls `Interpreter.run`. It is a
    plain `def`, so FastAPI runs it in the threadpool. Any exceptions are turned
    into a SERVER_ERROR response so callers receive a stable JSON shape.
    """
    start = time.time()
    try:
        capped = _cap_settings(req.settings or {})
        result = Interpreter().run(req.code, req.dialect, settings=capped)
    except Exception as e:
        logger.exception("run failed unexpectedly")
        # Return a consistent error payload instead of raising
        return {
            "output": "",
            "warnings": [],
            "dialect": req.dialect.value,
            "duration_ms": int((time.time() - start) * 1000),
            "errors": {"code": "SERVER_ERROR", "message": str(e)},
        }
    result["duration_ms"] = int((time.time() - start) * 1000)
    return result


@app.get("/keywords")
async def list_keywords(dialect: Dialect = Dialect.KANNADA):
    return {"dialect": dialect.value, "keywords": keyword_reference(dialect)}


@app.get("/samples")
async def list_samples(dialect: Dialect = Dialect.KANNADA):
    return {"dialect": dialect.value, "samples": sample_programs(dialect)}

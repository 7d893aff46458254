import json
import logging
import time
import asyncio
from contextlib import contextmanager
from functools import wraps
from typing import Optional

logger = logging.getLogger("vocabtrainer.telemetry")


def emit_event(event: str, *, route: str, version: str, status_code: Optional[int] = None,
               error_type: Optional[str] = None, latency_ms: Optional[int] = None,
               ok: Optional[bool] = None):
    payload = {
        "event": event,
        "route": route,
        "version": version,
        "status_code": status_code,
        "error_type": error_type,
        "latency_ms": latency_ms,
        "ok": ok,
        "ts": time.time(),
    }
    # single-line JSON so log shippers can parse it
    level = logging.WARNING if ok is False else logging.INFO
    logger.log(level, "telemetry=%s", json.dumps(payload, separators=(",", ":")))


@contextmanager
def _observe(route: str, version: str):
    """Time the wrapped block and emit one api_call event, success or not."""
    started = time.perf_counter()
    outcome = {"ok": True, "status_code": 200, "error_type": None}
    try:
        yield
    except Exception as exc:
        outcome.update(
            ok=False,
            status_code=getattr(exc, "status_code", 500),
            error_type=exc.__class__.__name__,
        )
        raise
    finally:
        emit_event(
            "api_call", route=route, version=version,
            latency_ms=int((time.perf_counter() - started) * 1000), **outcome,
        )


def instrument(route: str, version: str = "v1"):
    """Decorate a route handler (sync or async) so every call is logged."""
    def deco(fn):
        if asyncio.iscoroutinefunction(fn):
            @wraps(fn)
            async def wrapped_async(*args, **kwargs):
                with _observe(route, version):
                    return await fn(*args, **kwargs)
            return wrapped_async

        @wraps(fn)
        def wrapped(*args, **kwargs):
            with _observe(route, version):
                return fn(*args, **kwargs)
        return wrapped
    return deco

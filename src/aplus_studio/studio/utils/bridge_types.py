"""Shared types for the bridge layer."""

from __future__ import annotations

import functools
from dataclasses import asdict, dataclass
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import AplusStudioError

__all__ = ["BridgeResponse", "bridge_ok", "bridge_error", "bridge_call", "error_message"]

logger = get_logger(__name__)


@dataclass
class BridgeResponse:
    """Standard response format for bridge methods."""

    success: bool
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def bridge_ok(data: Any = None) -> dict:
    """Return a success response."""
    return BridgeResponse(success=True, data=data).to_dict()


def bridge_error(error: str) -> dict:
    """Return an error response."""
    return BridgeResponse(success=False, error=error).to_dict()


def error_message(exc: BaseException) -> str:
    """One human-readable line for an exception."""
    if isinstance(exc, AplusStudioError):
        return exc.message
    if isinstance(exc, PydanticValidationError):
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        return f"Invalid {loc}: {first['msg']}" if loc else first["msg"]
    return str(exc) or exc.__class__.__name__


def bridge_call(fn: Callable[..., dict]) -> Callable[..., dict]:
    """Turn any exception raised by a bridge method into `bridge_error`."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> dict:
        try:
            return fn(*args, **kwargs)
        except (AplusStudioError, PydanticValidationError, ValueError) as e:
            logger.warning("%s failed: %s", fn.__name__, e)
            return bridge_error(error_message(e))
        except Exception as e:
            logger.exception("Unexpected error in %s", fn.__name__)
            return bridge_error(error_message(e))

    return wrapper

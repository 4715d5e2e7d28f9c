# solaredge_client/errors.py

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Union


class SolarEdgeError(Exception):
    """Base class for every error raised by the client."""


class ValidationError(SolarEdgeError, ValueError):
    """A caller-supplied value failed its format, range or checksum rule."""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(f"Invalid {parameter}: {message}")


class WindowError(ValidationError):
    """A start/end pair is out of order or spans more than allowed."""


class TransportError(SolarEdgeError):
    """The HTTP request failed or the vendor answered with an error."""

    def __init__(self, path: str, message: str, status: Optional[int] = None):
        self.path = path
        self.status = status
        super().__init__(f"SolarEdge API {path}: {message}")


class SchemaError(SolarEdgeError):
    """The vendor payload does not have the documented shape."""


class ErrorPolicy(str, Enum):
    RAISE = "raise"
    LOG = "log"
    SUPPRESS = "suppress"

    @classmethod
    def parse(cls, raw: str) -> "ErrorPolicy":
        value = raw.strip().lower()
        for policy in cls:
            if policy.value == value:
                return policy
        accepted = ", ".join(p.value for p in cls)
        raise ValueError(f"Unknown error policy '{raw}' (expected one of: {accepted})")


ErrorHandler = Union[ErrorPolicy, str, Callable[[str, SolarEdgeError], None]]


def report(handler: ErrorHandler, site_id: str, exc: SolarEdgeError, log) -> None:
    """Route a per-site failure through the caller's policy or callback.

    Policy names such as "log" are accepted in place of ErrorPolicy members.
    """
    if isinstance(handler, str):
        handler = ErrorPolicy.parse(handler)
    elif not callable(handler):
        raise TypeError(f"on_error must be an ErrorPolicy, a policy name or a callable, got {handler!r}")
    if handler is ErrorPolicy.RAISE:
        raise exc
    if handler is ErrorPolicy.LOG:
        log.warning("[site %s] skipped: %s", site_id, exc)
        return
    if handler is ErrorPolicy.SUPPRESS:
        log.debug("[site %s] suppressed: %s", site_id, exc)
        return
    handler(site_id, exc)

from __future__ import annotations


class FormEngineError(Exception):
    """Base class for errors raised by the form engine."""


class OracleError(FormEngineError):
    """The decision oracle could not produce an answer."""


class OracleTransportError(OracleError):
    """Network, HTTP or authentication failure talking to the oracle.

    Fatal for the current application attempt.
    """


class OracleTimeoutError(OracleError):
    """The oracle did not answer within its timeout.

    Treated as an ordinary failed step by the agent loop.
    """


class ConfigValidationError(FormEngineError, ValueError):
    """Raised when the config directory does not pass validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid configuration")


__all__ = [
    "FormEngineError",
    "OracleError",
    "OracleTransportError",
    "OracleTimeoutError",
    "ConfigValidationError",
]

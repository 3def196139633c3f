from __future__ import annotations

from typing import Optional


class BirbsError(ValueError):
    """Base class for errors raised by the flocking simulation."""


class ConfigurationError(BirbsError):
    """Raised when simulation parameters are invalid.

    Either ``ConfigurationError("message")`` or
    ``ConfigurationError("neighbor_radius", "must be > 0")``.
    """

    def __init__(self, param_name: Optional[str] = None, reason: Optional[str] = None):
        if param_name and reason:
            message = f"Invalid configuration for '{param_name}': {reason}"
            self.param_name: Optional[str] = param_name
        else:
            message = param_name if param_name else "Invalid configuration"
            self.param_name = None
        self.reason = reason
        super().__init__(message)

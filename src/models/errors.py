"""
Error taxonomy

- ConfigError: out-of-range parameter, rejected before the Scheduler starts
- DeviceError: serial enumeration/open/write failure, fatal to the run
- RenderError: layout/buffer mismatch, a programming error
"""

from typing import Optional


class PongWarsError(Exception):
    """Base class for domain-specific errors"""
    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigError(PongWarsError):
    """Configuration value is missing, malformed or out of range"""
    def __init__(self, message: str, **details):
        super().__init__(
            code="CONFIG_ERROR",
            message=message,
            details=details,
        )


class DeviceError(PongWarsError):
    """LED Matrix unavailable, disconnected or rejected a write"""
    def __init__(self, message: str, **details):
        super().__init__(
            code="DEVICE_ERROR",
            message=message,
            details=details,
        )


class RenderError(PongWarsError):
    """Frame buffer does not match the panel layout"""
    def __init__(self, message: str, **details):
        super().__init__(
            code="RENDER_ERROR",
            message=message,
            details=details,
        )

"""Custom exceptions for EyeLove."""


class EyeLoveError(Exception):
    """Base exception for all EyeLove errors."""

    pass


class ColorParseError(EyeLoveError, ValueError):
    """Raised when a color string does not match any supported syntax."""

    pass


class UnsupportedEnvironmentError(EyeLoveError):
    """Raised when the host lacks a primitive the engine needs."""

    pass


class ConfigError(EyeLoveError):
    """Raised when the engine configuration is invalid."""

    pass


class MessageError(EyeLoveError):
    """Raised when a bridge message cannot be validated."""

    pass


class DocumentError(EyeLoveError):
    """Raised when an HTML document cannot be loaded."""

    pass

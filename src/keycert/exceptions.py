"""
Custom exceptions for the keycert engine.
"""

from __future__ import annotations


class KeyCertError(Exception):
    """Base exception class for key and certificate operations."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(KeyCertError):
    """Raised when caller input violates a bound before any cryptographic work."""

    @classmethod
    def at_least(cls, field: str, minimum: int, got: int) -> ValidationError:
        return cls(f"expected {field} to be at least ({minimum}), got {got}", field=field)

    @classmethod
    def unsupported_value(cls, field: str, value: object, supported: list[str]) -> ValidationError:
        return cls(
            f"invalid {field} {value!r}; supported values are: [{' '.join(supported)}]",
            field=field,
        )


class ConfigurationError(KeyCertError):
    """Raised when engine settings cannot be loaded."""


class DecodeError(KeyCertError):
    """Raised when no PEM block can be decoded from the input."""


class UnknownPreambleError(KeyCertError):
    """Raised when a PEM label is unknown or has no registered parser."""


class UnknownAlgorithmError(KeyCertError):
    """Raised when a decoded key does not belong to a supported algorithm."""


class ParseError(KeyCertError):
    """Raised when a payload does not match the key type declared by its preamble."""


class UnsupportedKeyTypeError(KeyCertError):
    """Raised when a key lacks a required capability."""


class KeyGenerationError(KeyCertError):
    """Raised when the underlying primitive fails to generate a key."""


class EncodingError(KeyCertError):
    """Raised when a structured certificate field cannot be serialized."""


class SigningError(KeyCertError):
    """Raised when a certificate or request cannot be signed."""

"""Shared service error definitions."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class ServiceError(Exception):
    code: str
    message: str
    status_code: int = 400

    def __str__(self) -> str:  # noqa: D401 override
        return f"{self.code}: {self.message}"


@dataclass(slots=True, eq=False)
class EncodingError(ServiceError):
    """Input rejected before any payload was produced."""

    field: str | None = None


class InvalidAmount(EncodingError):
    pass


class FieldTooLong(EncodingError):
    pass


class EmptyRequiredField(EncodingError):
    pass


class UnsupportedCharacters(EncodingError):
    pass


class PayloadFormatError(ServiceError):
    pass


def err_invalid_amount(message: str | None = None) -> InvalidAmount:
    return InvalidAmount(
        code="ERR_INVALID_AMOUNT",
        message=message or "Amount must be a positive number.",
        field="amount",
    )


def err_field_too_long(field: str, length: int) -> FieldTooLong:
    return FieldTooLong(
        code="ERR_FIELD_TOO_LONG",
        message=f"Field {field} is {length} characters long; at most 99 fit a TLV length prefix.",
        field=field,
    )


def err_missing_field(field: str) -> EmptyRequiredField:
    return EmptyRequiredField(
        code="ERR_MISSING_FIELD",
        message=f"Missing required field: {field}.",
        field=field,
    )


def err_non_ascii(field: str) -> UnsupportedCharacters:
    return UnsupportedCharacters(
        code="ERR_NON_ASCII",
        message=f"Field {field} must contain ASCII characters only.",
        field=field,
    )


def err_bad_payload(message: str | None = None) -> PayloadFormatError:
    return PayloadFormatError(code="ERR_BAD_PAYLOAD", message=message or "Invalid request payload")

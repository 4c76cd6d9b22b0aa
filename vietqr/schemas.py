"""Pydantic schemas for API contracts."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PayloadMode(str, Enum):
    EMV = "EMV"
    LEGACY = "LEGACY"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GenerateQRRequest(_CamelModel):
    bank_bin_code: str = Field(default="", alias="bankBinCode")
    bank_account: str = Field(default="", alias="bankAccount")
    amount: str = Field(default="", description="Decimal amount, sent as string or number")
    message: str | None = None
    mode: PayloadMode | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            # Plain decimal text, never exponent notation.
            return format(Decimal(repr(value)).normalize(), "f")
        return value


class VietQRData(_CamelModel):
    version: str
    bank_bin: str = Field(alias="bankBin")
    account_number: str = Field(alias="accountNumber")
    amount: float
    message: str
    timestamp: str
    qr_string: str = Field(alias="qrString")
    mode: PayloadMode
    bank_name: str | None = Field(default=None, alias="bankName")


class GenerateQRResponse(_CamelModel):
    success: bool = True
    qr_code_string: str = Field(alias="qrCodeString")
    data: VietQRData
    message: str = "QR code generated successfully"


class DecodeQRRequest(_CamelModel):
    qr_string: str = Field(alias="qrString", min_length=1)


class DecodedQRData(_CamelModel):
    bank_bin: str = Field(alias="bankBin")
    account_number: str = Field(alias="accountNumber")
    amount: str | None
    message: str
    currency: str | None
    country: str | None
    crc: str | None
    crc_valid: bool = Field(alias="crcValid")
    bank_name: str | None = Field(default=None, alias="bankName")


class DecodeQRResponse(_CamelModel):
    success: bool = True
    data: DecodedQRData


class BankEntry(_CamelModel):
    name: str
    short_name: str = Field(alias="shortName")
    bin: str


class ErrorResponse(_CamelModel):
    success: bool = False
    code: str
    error: str

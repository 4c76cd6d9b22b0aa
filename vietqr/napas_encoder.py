"""VietQR (NAPAS EMV profile) payload encoder and decoder."""
from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .crc import CRC_LENGTH, crc16_ccitt, verify_crc
from .services.errors import (
    err_bad_payload,
    err_field_too_long,
    err_invalid_amount,
    err_missing_field,
    err_non_ascii,
)
from .tlv import MAX_VALUE_LENGTH, TLVItem, build_tlv, tlv_dict

PAYLOAD_FORMAT_INDICATOR = "01"
POINT_OF_INITIATION = "12"
NAPAS_GUID = "A000000727"
SERVICE_CODE = "QRIBFTTA"
CURRENCY_VND = "704"
COUNTRY_CODE = "VN"
CRC_MARKER = "6304"

EMV_MESSAGE_LIMIT = 50
LEGACY_MESSAGE_LIMIT = 100
LEGACY_SEPARATOR = "|"

_AMOUNT_RE = re.compile(r"[0-9]+(\.[0-9]+)?")


@dataclass(frozen=True)
class EncodingRequest:
    bank_bin_code: str
    bank_account: str
    amount: str
    message: str = ""

    @property
    def numeric_amount(self) -> float:
        return float(self.amount)

    def beneficiary_items(self) -> Iterable[TLVItem]:
        yield TLVItem(tag="00", value=self.bank_bin_code, name="bankBinCode")
        yield TLVItem(tag="01", value=self.bank_account, name="bankAccount")

    def merchant_account_items(self) -> Iterable[TLVItem]:
        yield TLVItem(tag="00", value=NAPAS_GUID)
        yield TLVItem(tag="01", value=build_tlv(self.beneficiary_items()), name="beneficiary block")
        yield TLVItem(tag="02", value=SERVICE_CODE)

    def to_items(self) -> Iterable[TLVItem]:
        yield TLVItem(tag="00", value=PAYLOAD_FORMAT_INDICATOR)
        yield TLVItem(tag="01", value=POINT_OF_INITIATION)
        yield TLVItem(tag="38", value=build_tlv(self.merchant_account_items()), name="merchant account block")
        yield TLVItem(tag="53", value=CURRENCY_VND)
        yield TLVItem(tag="54", value=self.amount, name="amount")
        yield TLVItem(tag="58", value=COUNTRY_CODE)
        message = self.message[:EMV_MESSAGE_LIMIT]
        if message:
            yield TLVItem(tag="62", value=build_tlv([TLVItem(tag="08", value=message, name="message")]))


@dataclass(frozen=True)
class EncodedPayload:
    payload: str
    crc: str


@dataclass(frozen=True)
class DecodedPayload:
    bank_bin_code: str
    bank_account: str
    amount: str | None
    message: str
    currency: str | None
    country: str | None
    crc: str | None
    crc_valid: bool


def normalize_request(
    bank_bin_code: str | None,
    bank_account: str | None,
    amount: str | None,
    message: str | None = None,
) -> EncodingRequest:
    """Trim raw inputs and reject anything the TLV layout cannot carry."""

    bank_bin_code = (bank_bin_code or "").strip()
    bank_account = (bank_account or "").strip()
    amount = (amount or "").strip()
    if not bank_bin_code:
        raise err_missing_field("bankBinCode")
    if not bank_account:
        raise err_missing_field("bankAccount")
    if not amount:
        raise err_invalid_amount("Missing required field: amount.")
    if not _AMOUNT_RE.fullmatch(amount) or Decimal(amount) <= 0:
        raise err_invalid_amount()

    for field, value in (("bankBinCode", bank_bin_code), ("bankAccount", bank_account), ("amount", amount)):
        if len(value) > MAX_VALUE_LENGTH:
            raise err_field_too_long(field, len(value))

    return EncodingRequest(
        bank_bin_code=bank_bin_code,
        bank_account=bank_account,
        amount=amount,
        message=(message or "").strip(),
    )


def encode_request(request: EncodingRequest) -> EncodedPayload:
    """Serialize a normalized request and append the Tag 63 checksum."""

    for field, value in (
        ("bankBinCode", request.bank_bin_code),
        ("bankAccount", request.bank_account),
        ("message", request.message[:EMV_MESSAGE_LIMIT]),
    ):
        # Length prefixes count characters while scanners count bytes.
        if not value.isascii():
            raise err_non_ascii(field)

    crc_input = f"{build_tlv(request.to_items())}{CRC_MARKER}"
    crc = crc16_ccitt(crc_input)
    return EncodedPayload(payload=f"{crc_input}{crc}", crc=crc)


def encode(bank_bin_code: str, bank_account: str, amount: str, message: str | None = None) -> str:
    """Return the full VietQR EMV string for the given transfer.

    Bank code, account and message must be ASCII; strip diacritics before calling.
    """

    request = normalize_request(bank_bin_code, bank_account, amount, message)
    return encode_request(request).payload


def legacy_amount(amount: str) -> str:
    value = Decimal(amount)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def encode_legacy_request(request: EncodingRequest) -> str:
    """Pipe-delimited payload: ``bin|account|amount[|message]`` without checksum."""

    qr_string = LEGACY_SEPARATOR.join(
        (request.bank_bin_code, request.bank_account, legacy_amount(request.amount))
    )
    message = request.message.replace(LEGACY_SEPARATOR, "")[:LEGACY_MESSAGE_LIMIT]
    if message:
        qr_string += f"{LEGACY_SEPARATOR}{message}"
    return qr_string


def encode_legacy(bank_bin_code: str, bank_account: str, amount: str, message: str | None = None) -> str:
    request = normalize_request(bank_bin_code, bank_account, amount, message)
    return encode_legacy_request(request)


def decode_payload(qr_string: str) -> DecodedPayload:
    """Extract transfer fields from a VietQR EMV string and check its CRC."""

    qr_string = qr_string.strip()
    try:
        top = tlv_dict(qr_string)
        merchant = tlv_dict(top["38"])
        beneficiary = tlv_dict(merchant["01"])
        additional = tlv_dict(top["62"]) if "62" in top else {}
    except KeyError as exc:
        raise err_bad_payload(f"Missing TLV tag {exc.args[0]}") from exc
    except ValueError as exc:
        raise err_bad_payload(str(exc)) from exc

    crc = top.get("63")
    crc_valid = (
        crc is not None
        and len(crc) == CRC_LENGTH
        and qr_string.endswith(f"{CRC_MARKER}{crc}")
        and verify_crc(qr_string)
    )
    return DecodedPayload(
        bank_bin_code=beneficiary.get("00", ""),
        bank_account=beneficiary.get("01", ""),
        amount=top.get("54"),
        message=additional.get("08", ""),
        currency=top.get("53"),
        country=top.get("58"),
        crc=crc,
        crc_valid=crc_valid,
    )

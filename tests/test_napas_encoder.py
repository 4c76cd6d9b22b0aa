from __future__ import annotations

import pytest

from vietqr.crc import crc16_ccitt, verify_crc
from vietqr.napas_encoder import (
    decode_payload,
    encode,
    encode_legacy,
    encode_request,
    normalize_request,
)
from vietqr.services.errors import (
    EmptyRequiredField,
    EncodingError,
    FieldTooLong,
    InvalidAmount,
    PayloadFormatError,
    UnsupportedCharacters,
)
from vietqr.tlv import parse_tlv, tlv_dict

BASE_PAYLOAD = "00020101021238540010A00000072701240006970436011001234567890208QRIBFTTA53037045405500005802VN6304"
MESSAGE = "Thanh toan don hang 1234"


def _walk(payload: str) -> list[str]:
    """Parse every TLV level; parse_tlv raises if any length prefix is off."""

    tags = []
    for item in parse_tlv(payload):
        tags.append(item.tag)
        if item.tag in {"38", "62"}:
            for child in parse_tlv(item.value):
                tags.append(f"{item.tag}.{child.tag}")
                if item.tag == "38" and child.tag == "01":
                    tags.extend(f"38.01.{leaf.tag}" for leaf in parse_tlv(child.value))
    return tags


def test_reference_payload_without_message() -> None:
    qr = encode("970436", "0123456789", "50000", "")
    assert qr == BASE_PAYLOAD + "58CE"


def test_reference_payload_with_message() -> None:
    qr = encode("970436", "0123456789", "50000", MESSAGE)
    assert qr == (
        "00020101021238540010A00000072701240006970436011001234567890208QRIBFTTA"
        "53037045405500005802VN62280824Thanh toan don hang 12346304" + "25E9"
    )


def test_encode_is_idempotent() -> None:
    assert encode("970422", "123", "1000.50", "hi") == encode("970422", "123", "1000.50", "hi")


def test_checksum_covers_marker() -> None:
    qr = encode("970415", "9988776655", "250000", "Tien nha")
    body, crc = qr[:-4], qr[-4:]
    assert body.endswith("6304")
    assert crc16_ccitt(body) == crc
    assert verify_crc(qr)


def test_every_length_prefix_matches() -> None:
    qr = encode("970436", "0123456789", "50000", MESSAGE)
    assert _walk(qr) == [
        "00",
        "01",
        "38",
        "38.00",
        "38.01",
        "38.01.00",
        "38.01.01",
        "38.02",
        "53",
        "54",
        "58",
        "62",
        "62.08",
        "63",
    ]


@pytest.mark.parametrize("message", ["", "   ", None, "\t\n"])
def test_blank_message_omits_additional_data(message: str | None) -> None:
    qr = encode("970436", "0123456789", "50000", message)
    assert "62" not in tlv_dict(qr)
    assert qr == BASE_PAYLOAD + "58CE"


def test_message_truncated_to_50() -> None:
    message = "x" * 23 + "y" * 50
    assert len(message) == 73
    additional = tlv_dict(encode("970436", "0123456789", "50000", message))["62"]
    assert additional.startswith("0850")
    assert tlv_dict(additional)["08"] == message[:50]


def test_inputs_are_trimmed() -> None:
    assert encode(" 970436 ", "\t0123456789 ", " 50000 ", f"  {MESSAGE}  ") == encode(
        "970436", "0123456789", "50000", MESSAGE
    )


def test_amount_text_is_kept_verbatim() -> None:
    top = tlv_dict(encode("970436", "0123456789", "0050000.10"))
    assert top["54"] == "0050000.10"


@pytest.mark.parametrize("amount", ["", "  ", "abc", "0", "0.00", "-5", "+5", "1e5", "1,000", "12.", ".5", "NaN"])
def test_invalid_amount(amount: str) -> None:
    with pytest.raises(InvalidAmount) as excinfo:
        encode("970436", "0123456789", amount)
    assert excinfo.value.code == "ERR_INVALID_AMOUNT"


@pytest.mark.parametrize(
    "bank_bin,account,field",
    [("", "0123456789", "bankBinCode"), ("970436", "   ", "bankAccount")],
)
def test_empty_required_field(bank_bin: str, account: str, field: str) -> None:
    with pytest.raises(EmptyRequiredField) as excinfo:
        encode(bank_bin, account, "50000")
    assert excinfo.value.field == field
    assert isinstance(excinfo.value, EncodingError)


def test_amount_length_boundary() -> None:
    qr = encode("970436", "0123456789", "1" * 99)
    assert tlv_dict(qr)["54"] == "1" * 99
    with pytest.raises(FieldTooLong) as excinfo:
        encode("970436", "0123456789", "1" * 100)
    assert excinfo.value.field == "amount"


@pytest.mark.parametrize("field", ["bankBinCode", "bankAccount"])
def test_bank_fields_of_100_characters_rejected(field: str) -> None:
    values = {"bankBinCode": "970436", "bankAccount": "0123456789"}
    values[field] = "9" * 100
    with pytest.raises(FieldTooLong) as excinfo:
        encode(values["bankBinCode"], values["bankAccount"], "50000")
    assert excinfo.value.field == field


def test_bank_field_of_99_characters_overflows_enclosing_block() -> None:
    request = normalize_request("9" * 99, "0123456789", "50000")
    assert request.bank_bin_code == "9" * 99
    with pytest.raises(FieldTooLong) as excinfo:
        encode_request(request)
    assert excinfo.value.field == "beneficiary block"


def test_longest_account_that_fits() -> None:
    # Tag 38 carries 30 fixed characters around the beneficiary block, so a
    # 6-digit BIN leaves room for 55 account characters.
    qr = encode("970436", "1" * 55, "50000")
    assert len(tlv_dict(qr)["38"]) == 99
    with pytest.raises(FieldTooLong) as excinfo:
        encode("970436", "1" * 56, "50000")
    assert excinfo.value.field == "merchant account block"


def test_encode_request_reports_crc() -> None:
    encoded = encode_request(normalize_request("970436", "0123456789", "50000"))
    assert encoded.crc == "58CE"
    assert encoded.payload.endswith("630458CE")


def test_legacy_payload() -> None:
    assert encode_legacy("970436", "0123456789", "50000") == "970436|0123456789|50000"
    assert encode_legacy("970436", "0123456789", "50000.50", " a|b ") == "970436|0123456789|50000.5|ab"
    assert encode_legacy("970436", "0123456789", "50000.00", "|") == "970436|0123456789|50000"


def test_legacy_message_truncated_to_100() -> None:
    qr = encode_legacy("970436", "0123456789", "50000", "m" * 150)
    assert qr.split("|")[3] == "m" * 100


def test_legacy_shares_validation() -> None:
    with pytest.raises(InvalidAmount):
        encode_legacy("970436", "0123456789", "zero")


def test_decode_roundtrip_fields() -> None:
    decoded = decode_payload(encode("970436", "0123456789", "50000", MESSAGE))
    assert decoded.bank_bin_code == "970436"
    assert decoded.bank_account == "0123456789"
    assert decoded.amount == "50000"
    assert decoded.message == MESSAGE
    assert decoded.currency == "704"
    assert decoded.country == "VN"
    assert decoded.crc == "25E9"
    assert decoded.crc_valid


def test_decode_flags_tampered_payload() -> None:
    tampered = (BASE_PAYLOAD + "58CE").replace("540550000", "540590000")
    decoded = decode_payload(tampered)
    assert decoded.amount == "90000"
    assert not decoded.crc_valid


@pytest.mark.parametrize("qr", ["not a payload", "000201", "00020101021263045F9A", "0002010102125405"])
def test_decode_rejects_malformed(qr: str) -> None:
    with pytest.raises(PayloadFormatError) as excinfo:
        decode_payload(qr)
    assert excinfo.value.code == "ERR_BAD_PAYLOAD"


@pytest.mark.parametrize(
    "bank_bin,account,message,field",
    [
        ("970436", "0123456789", "Thanh toán", "message"),
        ("970436", "01234５6789", "", "bankAccount"),
        ("９70436", "0123456789", "", "bankBinCode"),
    ],
)
def test_non_ascii_rejected_in_emv_mode(bank_bin: str, account: str, message: str, field: str) -> None:
    with pytest.raises(UnsupportedCharacters) as excinfo:
        encode(bank_bin, account, "50000", message)
    assert excinfo.value.field == field
    assert excinfo.value.code == "ERR_NON_ASCII"


def test_non_ascii_past_message_limit_is_cut_before_check() -> None:
    qr = encode("970436", "0123456789", "50000", "x" * 50 + "á")
    assert tlv_dict(tlv_dict(qr)["62"])["08"] == "x" * 50


def test_legacy_keeps_non_ascii_message() -> None:
    assert encode_legacy("970436", "0123456789", "50000", "Thanh toán") == "970436|0123456789|50000|Thanh toán"


def test_legacy_message_trimmed_once_before_separator_removal() -> None:
    assert encode_legacy("970436", "0123456789", "50000", "a |") == "970436|0123456789|50000|a "

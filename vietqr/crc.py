"""CRC16-CCITT (FALSE variant) used as the VietQR integrity suffix."""
from __future__ import annotations

CRC16_POLY = 0x1021
CRC16_INIT = 0xFFFF
CRC_LENGTH = 4


def crc16_ccitt(data: str) -> str:
    """Compute CRC16-CCITT over ``data`` and render it as 4 uppercase hex digits.

    Bits are fed most significant first, with no reflection and no final XOR.
    """

    checksum = CRC16_INIT
    for byte in data.encode("utf-8"):
        for shift in range(7, -1, -1):
            bit = (byte >> shift) & 1
            top_bit = (checksum >> 15) & 1
            checksum = (checksum << 1) & 0xFFFF
            if top_bit != bit:
                checksum ^= CRC16_POLY
    return f"{checksum & 0xFFFF:04X}".rjust(CRC_LENGTH, "0")


def verify_crc(payload: str) -> bool:
    """Return True when the trailing checksum of ``payload`` matches its body."""

    if len(payload) < CRC_LENGTH:
        return False
    body, crc = payload[:-CRC_LENGTH], payload[-CRC_LENGTH:]
    return crc16_ccitt(body) == crc

"""Utility helpers to build and parse EMV-style TLV payloads."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .services.errors import err_field_too_long

MAX_VALUE_LENGTH = 99


@dataclass(frozen=True)
class TLVItem:
    tag: str
    value: str
    name: str | None = None

    def serialize(self) -> str:
        if len(self.value) > MAX_VALUE_LENGTH:
            raise err_field_too_long(self.name or f"tag {self.tag}", len(self.value))
        return f"{self.tag}{len(self.value):02d}{self.value}"


def build_tlv(items: Iterable[TLVItem]) -> str:
    """Serialize iterable of TLV items into EMV string."""

    return "".join(item.serialize() for item in items)


def parse_tlv(payload: str) -> Iterator[TLVItem]:
    """Parse TLV payload string into TLV items."""

    idx = 0
    total = len(payload)
    while idx + 4 <= total:
        tag = payload[idx : idx + 2]
        length_text = payload[idx + 2 : idx + 4]
        if not length_text.isdigit():
            raise ValueError(f"Invalid TLV length {length_text!r} for tag {tag}")
        value_start = idx + 4
        value_end = value_start + int(length_text)
        if value_end > total:
            raise ValueError(f"TLV length of tag {tag} exceeds payload")
        yield TLVItem(tag=tag, value=payload[value_start:value_end])
        idx = value_end
    if idx != total:
        raise ValueError("Dangling TLV data detected")


def tlv_dict(payload: str) -> dict[str, str]:
    """Map tags to values for a flat TLV level; later duplicates win."""

    return {item.tag: item.value for item in parse_tlv(payload)}

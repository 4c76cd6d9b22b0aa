"""Static directory of NAPAS bank BIN codes."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Bank:
    name: str
    short_name: str
    bin: str


BANKS: tuple[Bank, ...] = (
    Bank(name="Vietcombank", short_name="VCB", bin="970436"),
    Bank(name="Techcombank", short_name="TCB", bin="970407"),
    Bank(name="BIDV", short_name="BIDV", bin="970418"),
    Bank(name="Agribank", short_name="VBA", bin="970405"),
    Bank(name="MB Bank", short_name="MB", bin="970422"),
    Bank(name="ACB", short_name="ACB", bin="970416"),
    Bank(name="Sacombank", short_name="STB", bin="970403"),
    Bank(name="VPBank", short_name="VPB", bin="970432"),
    Bank(name="VietinBank", short_name="CTG", bin="970415"),
    Bank(name="TPBank", short_name="TPB", bin="970423"),
    Bank(name="MSB", short_name="MSB", bin="970426"),
    Bank(name="HDBank", short_name="HDB", bin="970437"),
    Bank(name="VIB", short_name="VIB", bin="970441"),
    Bank(name="SHB", short_name="SHB", bin="970443"),
    Bank(name="Eximbank", short_name="EIB", bin="970431"),
    Bank(name="OCB", short_name="OCB", bin="970448"),
    Bank(name="SeABank", short_name="SEAB", bin="970440"),
)

_BY_BIN = {bank.bin: bank for bank in BANKS}


def list_banks() -> list[Bank]:
    return sorted(BANKS, key=lambda bank: bank.name.lower())


def bank_name_for_bin(bin_code: str) -> str | None:
    bank = _BY_BIN.get(bin_code.strip())
    return bank.name if bank else None

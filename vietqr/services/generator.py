"""QR payload generation services."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from ..config import settings
from ..monitoring import record_payload_generated
from ..napas_encoder import EncodingRequest, encode_legacy_request, encode_request, normalize_request
from ..schemas import PayloadMode

logger = logging.getLogger("vietqr.generator")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class GenerateResult:
    request: EncodingRequest
    mode: PayloadMode
    qr_string: str
    crc: str | None
    timestamp: str


class QRGenerator:
    def __init__(self, default_mode: PayloadMode | None = None, clock: Callable[[], datetime] = utc_now):
        self.default_mode = default_mode or PayloadMode(settings.default_mode)
        self.clock = clock

    def generate(
        self,
        *,
        bank_bin_code: str,
        bank_account: str,
        amount: str,
        message: str | None = None,
        mode: PayloadMode | None = None,
    ) -> GenerateResult:
        request = normalize_request(bank_bin_code, bank_account, amount, message)
        mode = mode or self.default_mode

        crc: str | None = None
        if mode is PayloadMode.LEGACY:
            qr_string = encode_legacy_request(request)
        else:
            encoded = encode_request(request)
            qr_string, crc = encoded.payload, encoded.crc

        record_payload_generated(mode.value)
        logger.info(
            "qr payload generated",
            extra={"bank_bin": request.bank_bin_code, "mode": mode.value, "crc": crc},
        )
        return GenerateResult(
            request=request,
            mode=mode,
            qr_string=qr_string,
            crc=crc,
            timestamp=self.clock().isoformat(),
        )

"""FastAPI application for vietqr."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .banks import bank_name_for_bin, list_banks
from .config import settings
from .logging_conf import configure_logging
from .middleware import RequestLoggingMiddleware, annotate_request, route_path
from .monitoring import metrics_payload, record_service_error
from .napas_encoder import decode_payload
from .schemas import (
    BankEntry,
    DecodedQRData,
    DecodeQRRequest,
    DecodeQRResponse,
    ErrorResponse,
    GenerateQRRequest,
    GenerateQRResponse,
    VietQRData,
)
from .services.errors import ServiceError
from .services.generator import QRGenerator

app = FastAPI(title="vietqr", version="0.1.0")
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

logger = logging.getLogger("vietqr.api")


def _warn_insecure_defaults() -> None:
    if settings.environment == "production" and "*" in settings.allowed_origins:
        logger.warning(
            "CORS allows every origin in production",
            extra={"config_key": "allowed_origins"},
        )


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(code=code, error=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    _warn_insecure_defaults()


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    path = route_path(request)
    logger.warning(
        "service error",
        extra={"code": exc.code, "path": path, "method": request.method},
    )
    annotate_request(request, error_code=exc.code)
    record_service_error(exc.code, path)
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    path = route_path(request)
    logger.warning(
        "invalid request body",
        extra={"path": path, "method": request.method, "errors": len(exc.errors())},
    )
    annotate_request(request, error_code="ERR_BAD_PAYLOAD")
    record_service_error("ERR_BAD_PAYLOAD", path)
    return _error_response(status.HTTP_400_BAD_REQUEST, "ERR_BAD_PAYLOAD", "Invalid JSON in request body")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, f"ERR_HTTP_{exc.status_code}", str(exc.detail).capitalize())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled exception",
        extra={"path": route_path(request), "method": request.method},
    )
    return _error_response(500, "ERR_INTERNAL", "Internal server error")


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["system"])
async def metrics() -> Response:
    payload, content_type = metrics_payload()
    return Response(content=payload, media_type=content_type)


@app.options("/api/generate-qr", tags=["qr"])
async def generate_qr_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK)


@app.post("/api/generate-qr", response_model=GenerateQRResponse, tags=["qr"])
async def generate_qr(payload: GenerateQRRequest, http_request: Request) -> GenerateQRResponse:
    result = QRGenerator().generate(
        bank_bin_code=payload.bank_bin_code,
        bank_account=payload.bank_account,
        amount=payload.amount,
        message=payload.message,
        mode=payload.mode,
    )
    annotate_request(http_request, payload_mode=result.mode.value)
    request = result.request

    return GenerateQRResponse(
        qr_code_string=result.qr_string,
        data=VietQRData(
            version=settings.payload_version,
            bank_bin=request.bank_bin_code,
            account_number=request.bank_account,
            amount=request.numeric_amount,
            message=payload.message or "",
            timestamp=result.timestamp,
            qr_string=result.qr_string,
            mode=result.mode,
            bank_name=bank_name_for_bin(request.bank_bin_code),
        ),
    )


@app.post("/api/decode-qr", response_model=DecodeQRResponse, tags=["qr"])
async def decode_qr(payload: DecodeQRRequest) -> DecodeQRResponse:
    decoded = decode_payload(payload.qr_string)

    return DecodeQRResponse(
        data=DecodedQRData(
            bank_bin=decoded.bank_bin_code,
            account_number=decoded.bank_account,
            amount=decoded.amount,
            message=decoded.message,
            currency=decoded.currency,
            country=decoded.country,
            crc=decoded.crc,
            crc_valid=decoded.crc_valid,
            bank_name=bank_name_for_bin(decoded.bank_bin_code),
        )
    )


@app.get("/api/banks", response_model=list[BankEntry], tags=["banks"])
async def banks() -> list[BankEntry]:
    return [BankEntry(name=bank.name, short_name=bank.short_name, bin=bank.bin) for bank in list_banks()]

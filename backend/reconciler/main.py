from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from .normalize import DataContractViolation, normalize
from .request_utils import get_client_ip, get_request_id
from .schemas import CanonicalTransaction, NormalizeRequest, VerifyPaymentRequest, VerifyPaymentResponse
from .settings import settings
from .validator import validate

logger = logging.getLogger("reconciler")
logger.setLevel(settings.log_level.upper())

# Loaded once; read-only for the life of the process.
validation_config = settings.validation_config()
receiver_profiles = settings.profile_store()
source_tz = settings.source_tz()

app = FastAPI(title="receipt-reconciler", version="0.1.0")

# For MVP/dev. In production, restrict allow_origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = get_request_id(request)
    ip = get_client_ip(request)
    start = time.perf_counter()

    response = await call_next(request)

    duration_ms = int((time.perf_counter() - start) * 1000)
    response.headers["x-request-id"] = request_id
    logger.info(
        "request_id=%s ip=%s method=%s path=%s status=%s duration_ms=%s",
        request_id,
        ip,
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


@app.exception_handler(DataContractViolation)
async def contract_violation_handler(request: Request, exc: DataContractViolation) -> JSONResponse:
    logger.warning("contract_violation path=%s detail=%s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "service": "receipt-reconciler"}


@app.post("/normalize", response_model=CanonicalTransaction)
async def api_normalize(req: NormalizeRequest) -> CanonicalTransaction:
    return normalize(req.result, req.reference, method=req.payment_method, assume_tz=source_tz)


@app.post("/verify-payment", response_model=VerifyPaymentResponse)
async def api_verify_payment(req: VerifyPaymentRequest) -> VerifyPaymentResponse:
    logger.info("verify_payment payment_method=%s reference=%s", req.payment_method.value, req.reference)
    tx = normalize(req.result, req.reference, method=req.payment_method, assume_tz=source_tz)

    if not tx.success:
        return VerifyPaymentResponse(
            success=False,
            validated=False,
            receipt_reference=tx.receipt_reference,
            error=tx.error,
            transaction=tx,
        )

    verdict = validate(
        tx,
        req.expected_amount,
        req.payment_method,
        profiles=receiver_profiles,
        config=validation_config,
    )
    return VerifyPaymentResponse(
        success=True,
        validated=verdict.passed,
        amount=tx.amount,
        receipt_reference=tx.receipt_reference,
        validation=verdict,
        transaction=tx,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)

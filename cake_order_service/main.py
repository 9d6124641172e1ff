"""
main.py — FastAPI Entry Point for the Cake Order Service

This module provides the REST API used by the cake storefront.

Responsibilities:
    • Create payment gateway orders for server-priced cakes (POST /create-order)
    • Verify payment callbacks and send confirmations (POST /verify-and-email)
    • Provide health information (GET /health, GET /)
    • Map service errors to `{"success": false, "error": "<code>"}` bodies

Collaborators are created once per process from the settings and injected with
`Depends`, so tests can replace them through `app.dependency_overrides`.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .capacity import CapacityChecker
from .clients import MailClient, PaymentGatewayClient, SheetsLedgerClient
from .config import Settings, get_settings
from .errors import OrderServiceError
from .logging_config import get_logger, setup_logging
from .models import OrderIntent, PaymentConfirmation
from .workflow import confirm_payment, create_order

# Initialization
# Settings are validated here: missing gateway credentials stop the process.
setup_logging(get_settings().log_level, get_settings().log_file)
log = get_logger(__name__)


@lru_cache
def get_gateway_client() -> PaymentGatewayClient:
    current = get_settings()
    return PaymentGatewayClient(
        base_url=current.razorpay_base_url,
        key_id=current.razorpay_key_id,
        key_secret=current.razorpay_key_secret.get_secret_value(),
        timeout=current.gateway_timeout_seconds,
    )


@lru_cache
def get_mail_client() -> MailClient:
    current = get_settings()
    password = current.smtp_password.get_secret_value() if current.smtp_password else None
    return MailClient(
        host=current.smtp_host,
        port=current.smtp_port,
        user=current.smtp_user,
        password=password,
    )


@lru_cache
def get_ledger_client() -> SheetsLedgerClient:
    current = get_settings()
    return SheetsLedgerClient(
        sheet_id=current.ledger_sheet_id,
        range_=current.ledger_range,
        service_account_file=current.google_service_account_file,
    )


@lru_cache
def get_capacity_checker() -> Optional[CapacityChecker]:
    current = get_settings()
    if current.max_orders_per_day is None:
        return None
    return CapacityChecker(current.max_orders_per_day)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Logs the active configuration on startup and closes the gateway session on shutdown."""
    settings = application.dependency_overrides.get(get_settings, get_settings)()
    log.info(f"{settings.app_name} starting (gateway: {settings.razorpay_base_url}, "
             f"currency: {settings.currency}).")
    for name in settings.disabled_integrations():
        log.warning(f"Integration '{name}' is not configured; its notifications will be logged as failed.")
    if settings.max_orders_per_day:
        log.info(f"Daily booking cap: {settings.max_orders_per_day} orders per delivery date.")
    yield
    if get_gateway_client.cache_info().currsize:
        get_gateway_client().close()


app = FastAPI(title=get_settings().app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderServiceError)
async def order_service_error_handler(request: Request, exc: OrderServiceError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.code})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    log.info(f"Rejected malformed request to {request.url.path}: {len(exc.errors())} validation error(s).")
    return JSONResponse(status_code=400, content={"success": False, "error": "invalid_payload"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.critical(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"success": False, "error": "internal_error"})


# API Endpoint: storefront → gateway order
@app.post("/create-order")
def create_order_endpoint(
        order: OrderIntent,
        gateway: PaymentGatewayClient = Depends(get_gateway_client),
        capacity: Optional[CapacityChecker] = Depends(get_capacity_checker),
        current: Settings = Depends(get_settings),
):
    """
    Prices the submitted cake on the server and opens a payment gateway order for it.

    Returns:
        dict: `{"success": true, "order": {"id", "amount", "currency"}, "amountRupees"}`.
        Errors are returned as `{"success": false, "error": code}` with status 400, 409 or 502.
    """
    response = create_order(order, gateway=gateway, currency=current.currency, capacity=capacity)
    return response.model_dump()


# API Endpoint: gateway callback → confirmation
@app.post("/verify-and-email")
def verify_and_email(
        confirmation: PaymentConfirmation,
        mail: MailClient = Depends(get_mail_client),
        ledger: SheetsLedgerClient = Depends(get_ledger_client),
        current: Settings = Depends(get_settings),
):
    """
    Verifies the gateway signature and sends customer, admin and ledger notifications.

    Notification failures are logged but do not affect the response: a verified payment
    always answers `{"success": true}`.
    """
    confirm_payment(confirmation, settings=current, mail=mail, ledger=ledger)
    return {"success": True}


# Health Check Endpoints
@app.get("/health")
@app.get("/")
def health_check(current: Settings = Depends(get_settings)):
    """
    Simple health check endpoint for monitoring and container orchestrators.

    Returns:
        dict: A basic JSON object indicating service availability.
    """
    return {"status": "ok", "message": f"{current.shop_name} backend running"}

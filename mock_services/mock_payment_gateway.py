"""
mock_payment_gateway.py — Mock Implementation of the Payment Gateway Orders API

This module provides a simulated payment gateway for local development of the order
service. It exposes a small FastAPI application that mimics the gateway's order endpoint
and can sign callback payloads the way the real checkout does.

Simulation Scenarios:
    • Successful order creation
    • Rejected order (HTTP 400) for amounts below ₹1
    • Timeout simulation for receipts starting with "rcpt_timeout_"

Endpoints:
    POST /v1/orders — Creates an order (HTTP basic auth with the configured key pair).
    POST /dev/sign  — Returns the callback signature for an order/payment id pair.

Configuration:
    RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET must match the order service's settings.

Port:
    Default: 8001 (HTTP)
"""

import logging
import os
import secrets
import time
import uuid
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel

from cake_order_service.signature import generate_signature

app = FastAPI(title="Mock Payment Gateway")
security = HTTPBasic()
logging.basicConfig(level=logging.INFO)

KEY_ID = os.environ.get("RAZORPAY_KEY_ID", "")
KEY_SECRET = os.environ.get("RAZORPAY_KEY_SECRET", "")


class OrderRequest(BaseModel):
    """
    Represents a gateway order request payload.

    Attributes:
        amount (int): Amount in the smallest currency unit (paise).
        currency (str): ISO 4217 currency code (e.g., 'INR').
        receipt (str): Merchant receipt reference.
        payment_capture (int): 1 to capture payments automatically.
        notes (dict): Free-form merchant notes.
    """
    amount: int
    currency: str
    receipt: str
    payment_capture: int = 1
    notes: Optional[dict] = None


class SignRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: Optional[str] = None


def authenticate(credentials: HTTPBasicCredentials = Depends(security)):
    """Accepts only the configured key pair."""
    if not KEY_ID or not KEY_SECRET:
        raise HTTPException(status_code=500, detail="Mock gateway keys are not configured.")
    valid_id = secrets.compare_digest(credentials.username, KEY_ID)
    valid_secret = secrets.compare_digest(credentials.password, KEY_SECRET)
    if not (valid_id and valid_secret):
        raise HTTPException(status_code=401, detail={"error": {"code": "BAD_REQUEST_ERROR",
                                                               "description": "Authentication failed"}})


@app.post("/v1/orders", dependencies=[Depends(authenticate)])
def create_order(request: OrderRequest):
    """
    Creates a gateway order.

    This endpoint simulates different outcomes based on the request:
        - amount < 100 → Order rejected (HTTP 400)
        - receipt starts with "rcpt_timeout_" → Simulated slow gateway
        - anything else → Order created with status "created"

    Returns:
        dict: Gateway order with id, amount, currency, receipt, status and created_at.
    """
    logging.info(f"[GW] Order request for {request.receipt}: {request.amount} {request.currency}")

    if request.amount < 100:
        logging.warning(f"[GW] Order {request.receipt} rejected: amount too small.")
        raise HTTPException(
            status_code=400,
            detail={"error": {"code": "BAD_REQUEST_ERROR",
                              "description": "Order amount less than minimum amount allowed"}}
        )

    if request.receipt.startswith("rcpt_timeout_"):
        logging.info(f"[GW] Simulating timeout for {request.receipt}...")
        time.sleep(10)

    order_id = f"order_{uuid.uuid4().hex[:14]}"
    logging.info(f"[GW] Order {order_id} created for {request.receipt}.")
    return {
        "id": order_id,
        "entity": "order",
        "amount": request.amount,
        "amount_paid": 0,
        "amount_due": request.amount,
        "currency": request.currency,
        "receipt": request.receipt,
        "status": "created",
        "notes": request.notes or {},
        "created_at": int(time.time()),
    }


@app.post("/dev/sign")
def sign_callback(request: SignRequest):
    """
    Produces the callback fields the checkout would post after a successful payment.

    A payment id is generated when none is given.
    """
    if not KEY_SECRET:
        raise HTTPException(status_code=500, detail="Mock gateway keys are not configured.")
    payment_id = request.razorpay_payment_id or f"pay_{uuid.uuid4().hex[:14]}"
    return {
        "razorpay_order_id": request.razorpay_order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": generate_signature(request.razorpay_order_id, payment_id, KEY_SECRET),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)

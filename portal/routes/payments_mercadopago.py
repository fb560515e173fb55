# File: portal/routes/payments_mercadopago.py
# -*- coding: utf-8 -*-
"""
Mercado Pago integration: charges a due through the gateway and turns the
gateway notifications into ledger payments or failed dues.
"""
import logging
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

import mercadopago
from dateutil import parser as date_parser
from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from portal import ledger, store
from portal.config import Config
from portal.exceptions import LedgerError, ConcurrentUpdateConflict
from portal.models.due import DueStatus
from portal.models.payment import PaymentMethod

EXTERNAL_REFERENCE_PREFIX = "due_"

# Gateway payment_type_id -> ledger payment method (Pix comes in as bank_transfer)
GATEWAY_METHODS = {
    "credit_card": PaymentMethod.CARD.value,
    "debit_card": PaymentMethod.CARD.value,
    "prepaid_card": PaymentMethod.CARD.value,
    "bank_transfer": PaymentMethod.BANK_TRANSFER.value,
}

FAILED_GATEWAY_STATUSES = ("rejected", "cancelled")


def get_sdk():
    access_token = Config.MP_ACCESS_TOKEN
    if not access_token:
        logging.error("MP_ACCESS_TOKEN is not configured.")
        return None
    return mercadopago.SDK(access_token)


def to_major_units(amount: int) -> float:
    return float(Decimal(amount) / 100)


def to_minor_units(amount) -> int:
    return int((Decimal(str(amount)) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def parse_due_reference(external_ref):
    if not external_ref or not external_ref.startswith(EXTERNAL_REFERENCE_PREFIX):
        raise ValueError(f"Unknown external_reference: {external_ref}")
    return int(external_ref[len(EXTERNAL_REFERENCE_PREFIX):])


def _approved_at(payment: dict) -> datetime:
    raw = payment.get("date_approved")
    if not raw:
        return datetime.now()
    # Wall-clock time in the gateway's offset, the same clock the portal bills on
    return date_parser.isoparse(raw).replace(tzinfo=None)


def create_gateway_charge(db: Session, due_id: int, payer_email: str, as_of: date):
    """
    Creates a gateway payment for what the due currently owes and returns
    the data the front-end needs to show the QR code / checkout.
    """
    sdk = get_sdk()
    if not sdk:
        raise HTTPException(status_code=500, detail="Payment gateway is not configured.")

    db_due = store.get_due(db, due_id)
    if db_due.status in (DueStatus.PAID.value, DueStatus.FAILED.value):
        raise HTTPException(status_code=400, detail=f"Due is already {db_due.status}.")

    outstanding = ledger.total_owed(db_due, as_of) - store.get_paid_sum(db, due_id)
    if outstanding <= 0:
        raise HTTPException(status_code=400, detail="Nothing left to pay on this due.")

    request_options = mercadopago.config.RequestOptions()
    request_options.custom_headers = {
        'x-idempotency-key': str(uuid.uuid4())
    }

    notification_url = f"{Config.BACKEND_URL.rstrip('/')}/api/v1/payments/mercadopago/webhook"

    payment_data = {
        "transaction_amount": to_major_units(outstanding),
        "description": db_due.description,
        "payment_method_id": "pix",
        "payer": {"email": payer_email},
        "notification_url": notification_url,
        "external_reference": f"{EXTERNAL_REFERENCE_PREFIX}{db_due.id}",
        # Charge expires in 30 minutes
        "date_of_expiration": (datetime.utcnow() + timedelta(minutes=30)).strftime("%Y-%m-%dT%H:%M:%SZ")
    }

    try:
        payment_response = sdk.payment().create(payment_data, request_options)
    except Exception as e:
        logging.error(f"Gateway error while charging due #{due_id}: {e}")
        raise HTTPException(status_code=502, detail="Payment gateway unavailable.")

    payment = payment_response.get("response", {})
    if payment_response.get("status") != 201:
        logging.error(f"Gateway rejected charge for due #{due_id}: {payment}")
        raise HTTPException(status_code=400, detail=payment.get("message", "Could not create the charge."))

    trans_data = payment.get("point_of_interaction", {}).get("transaction_data", {})
    return {
        "due_id": db_due.id,
        "amount": outstanding,
        "qr_code": trans_data.get("qr_code"),
        "qr_code_base64": trans_data.get("qr_code_base64"),
        "payment_id": payment.get("id"),
        "status": payment.get("status")
    }


def apply_gateway_payment(db: Session, payment: dict, as_of: date):
    """
    Applies one gateway payment (as returned by ``sdk.payment().get``) to the
    ledger on day ``as_of``. Returns the action taken, for logging and tests.
    """
    gateway_status = payment.get("status")
    due_id = parse_due_reference(payment.get("external_reference"))

    if gateway_status == "approved":
        db_due = store.get_due(db, due_id)
        method = GATEWAY_METHODS.get(payment.get("payment_type_id"), PaymentMethod.CARD.value)
        store.record_payment(
            db,
            due_id=due_id,
            student_id=db_due.student_id,
            amount=to_minor_units(payment.get("transaction_amount", 0)),
            payment_method=method,
            paid_at=_approved_at(payment),
            as_of=as_of,
            payment_reference=f"Mercado Pago #{payment.get('id')}",
            gateway_payment_id=str(payment.get("id")),
        )
        return "recorded"

    if gateway_status in FAILED_GATEWAY_STATUSES:
        store.mark_due_failed(db, due_id)
        return "failed"

    return "ignored"


async def handle_mp_webhook(request: Request, db: Session):
    """
    Receives the Mercado Pago notification and updates the ledger.
    """
    sdk = get_sdk()
    if not sdk:
        return {"status": "error", "detail": "SDK not initialized"}

    params = request.query_params
    topic = params.get("topic") or params.get("type")
    data_id = params.get("id") or params.get("data.id")

    if topic != "payment" or not data_id:
        return {"status": "ok", "detail": "ignored"}

    try:
        payment_info = sdk.payment().get(data_id)
        action = apply_gateway_payment(db, payment_info.get("response", {}), date.today())
        logging.info(f"Gateway payment {data_id}: {action}")
        return {"status": "ok", "detail": action}
    except ConcurrentUpdateConflict as e:
        # Lets the gateway re-deliver the notification
        logging.warning(f"Conflict applying gateway payment {data_id}: {e.detail}")
        raise HTTPException(status_code=409, detail=e.detail)
    except (LedgerError, ValueError) as e:
        logging.error(f"Gateway payment {data_id} could not be applied: {e}")
        return {"status": "ok", "detail": "handled_with_error"}

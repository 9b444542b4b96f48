"""
Order and Payment API Routes

Orders are stored as the client sent them; payments are simulated and
always succeed. Neither requires a session.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends
from loguru import logger

from delicacies.api.dependencies import get_record_store
from delicacies.api.schemas import Envelope, OrderCreated, PaymentSimulation
from delicacies.storage.record_store import RecordStore
from delicacies.storage.tables import ORDERS

router = APIRouter(tags=["orders"])


def _as_dict(payload: Any) -> dict:
    return dict(payload) if isinstance(payload, dict) else {}


@router.post("/orders", response_model=Envelope[OrderCreated])
def create_order(
    payload: Any = Body(default=None),
    store: RecordStore = Depends(get_record_store),
):
    """Store an arbitrary order payload and return its id."""
    order = store.insert(ORDERS, {
        "createdAt": datetime.now(timezone.utc).isoformat(),
        **_as_dict(payload),
    })

    logger.info(f"Stored order #{order['id']}")
    return {"data": {"id": order["id"]}}


@router.post("/payments/simulate", response_model=Envelope[PaymentSimulation])
def simulate_payment(payload: Any = Body(default=None)):
    """Pretend to charge the customer. Echoes the request back."""
    return {
        "data": {
            "success": True,
            "paymentId": str(uuid.uuid4()),
            "echo": _as_dict(payload),
        }
    }

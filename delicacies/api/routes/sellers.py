"""
Seller API Routes

Seller profile creation and lookup, plus the seller's payout banking details.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from loguru import logger

from delicacies.api.dependencies import (
    get_record_store,
    get_upload_sink,
    require_user,
)
from delicacies.api.forms import form_file, form_text, store_upload
from delicacies.api.schemas import (
    BankingDetailsRequest,
    Envelope,
    ErrorResponse,
)
from delicacies.exceptions import ConflictError, NotFoundError, ValidationError
from delicacies.storage.record_store import Record, RecordStore
from delicacies.storage.tables import SELLER_BANKING, SELLERS
from delicacies.storage.uploads import UploadSink

router = APIRouter(prefix="/sellers", tags=["sellers"])


ACCOUNT_NUMBER_PATTERN = re.compile(r"^\d{6,18}$")
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")


def find_seller(store: RecordStore, user: Record) -> Optional[Record]:
    """Seller profile owned by a user, if any."""
    return store.find_one(SELLERS, {"userId": user["id"]})


# =============================================================================
# Seller Profile
# =============================================================================

@router.post(
    "",
    response_model=Envelope[dict[str, Any]],
    responses={
        401: {"model": ErrorResponse, "description": "Not logged in"},
        409: {"model": ErrorResponse, "description": "Seller already exists"},
    },
)
async def create_seller(
    request: Request,
    user: Record = Depends(require_user),
    store: RecordStore = Depends(get_record_store),
    sink: UploadSink = Depends(get_upload_sink),
):
    """
    Create the caller's seller profile from a multipart form.

    Optional files: profile_image, banner_image.
    """
    if await asyncio.to_thread(find_seller, store, user) is not None:
        raise ConflictError("Seller profile already exists for this user")

    form = await request.form()

    profile_image = await store_upload(sink, form_file(form, "profile_image"))
    banner_image = await store_upload(sink, form_file(form, "banner_image"))

    seller = await asyncio.to_thread(store.insert, SELLERS, {
        "userId": user["id"],
        "business_name": form_text(form, "business_name", "businessName"),
        "owner_name": form_text(form, "owner_name", "ownerName"),
        "email": form_text(form, "email") or user.get("email"),
        "phone": form_text(form, "phone"),
        "address": form_text(form, "address"),
        "city": form_text(form, "city"),
        "state": form_text(form, "state"),
        "description": form_text(form, "description"),
        "profile_image_path": profile_image,
        "banner_image_path": banner_image,
        "created_at": datetime.now(timezone.utc).isoformat(),
    })

    logger.info(f"Created seller #{seller['id']} for user #{user['id']}")
    return {"data": seller}


@router.get(
    "/me",
    response_model=Envelope[dict[str, Any]],
    responses={
        404: {"model": ErrorResponse, "description": "No seller profile"},
    },
)
def get_my_seller(
    user: Record = Depends(require_user),
    store: RecordStore = Depends(get_record_store),
):
    """Get the caller's seller profile."""
    seller = find_seller(store, user)
    if seller is None:
        raise NotFoundError("Seller profile not found")
    return {"data": seller}


# =============================================================================
# Banking Details
# =============================================================================

def validate_banking(body: BankingDetailsRequest) -> dict:
    """
    Check banking fields and normalize them for storage.

    Raises:
        ValidationError: On missing fields, a malformed account number or IFSC
    """
    required = {
        "accountHolderName": body.accountHolderName,
        "bankAccountNumber": body.bankAccountNumber,
        "ifsc": body.ifsc,
        "bankName": body.bankName,
    }
    if not all(required.values()):
        raise ValidationError("Missing required fields")

    account_number = str(body.bankAccountNumber)
    if not ACCOUNT_NUMBER_PATTERN.match(account_number):
        raise ValidationError("Invalid bank account number")

    ifsc = str(body.ifsc).upper()
    if not IFSC_PATTERN.match(ifsc):
        raise ValidationError("Invalid IFSC format")

    return {
        "accountHolderName": str(body.accountHolderName),
        "bankAccountNumber": account_number,
        "ifsc": ifsc,
        "bankName": str(body.bankName),
        "branch": str(body.branch) if body.branch else "",
        "taxId": str(body.taxId) if body.taxId else "",
    }


@router.get("/banking", response_model=Envelope[Optional[dict[str, Any]]])
def get_banking(
    user: Record = Depends(require_user),
    store: RecordStore = Depends(get_record_store),
):
    """Get the caller's banking details, or null if none were saved."""
    return {"data": store.find_one(SELLER_BANKING, {"userId": user["id"]})}


@router.post(
    "/banking",
    response_model=Envelope[bool],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid banking details"},
    },
)
def save_banking(
    body: BankingDetailsRequest,
    user: Record = Depends(require_user),
    store: RecordStore = Depends(get_record_store),
):
    """Create or replace the caller's banking details."""
    fields = validate_banking(body)
    now = datetime.now(timezone.utc).isoformat()

    store.upsert(
        SELLER_BANKING,
        key={"userId": user["id"]},
        changes={**fields, "updatedAt": now},
        on_insert={"createdAt": now},
    )

    logger.info(f"Saved banking details for user #{user['id']}")
    return {"data": True}

"""
Product API Routes

Seller-submitted products with a main image and up to five extra images.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from loguru import logger

from delicacies.api.dependencies import (
    get_record_store,
    get_upload_sink,
    require_user,
)
from delicacies.api.forms import (
    form_file,
    form_files,
    form_text,
    parse_float,
    parse_int,
    store_upload,
)
from delicacies.api.routes.sellers import find_seller
from delicacies.api.schemas import Envelope, ErrorResponse
from delicacies.exceptions import NotFoundError
from delicacies.storage.record_store import Record, RecordStore
from delicacies.storage.tables import PRODUCTS
from delicacies.storage.uploads import UploadSink

router = APIRouter(prefix="/products", tags=["products"])

MAX_ADDITIONAL_IMAGES = 5


@router.post(
    "",
    response_model=Envelope[dict[str, Any]],
    responses={
        401: {"model": ErrorResponse, "description": "Not logged in"},
        404: {"model": ErrorResponse, "description": "No seller profile"},
    },
)
async def create_product(
    request: Request,
    user: Record = Depends(require_user),
    store: RecordStore = Depends(get_record_store),
    sink: UploadSink = Depends(get_upload_sink),
):
    """
    Create a product for the caller's seller profile.

    Numeric fields are parsed leniently: "12.5kg" reads as 12.5 and an
    unparseable value is stored as null.
    """
    seller = await asyncio.to_thread(find_seller, store, user)
    if seller is None:
        raise NotFoundError("Seller profile not found. Please create a seller profile first.")

    form = await request.form()

    main_image = await store_upload(sink, form_file(form, "main_image"))
    additional_images = [
        await store_upload(sink, upload)
        for upload in form_files(form, "additional_images", limit=MAX_ADDITIONAL_IMAGES)
    ]

    product = await asyncio.to_thread(store.insert, PRODUCTS, {
        "seller_id": seller["id"],
        "name": form_text(form, "name"),
        "description": form_text(form, "description"),
        "price": parse_float(form_text(form, "price")),
        "original_price": parse_float(form_text(form, "original_price", "originalPrice")),
        "weight": form_text(form, "weight"),
        "ingredients": form_text(form, "ingredients"),
        "shelf_life": form_text(form, "shelf_life", "shelfLife"),
        "stock_quantity": parse_int(form_text(form, "stock_quantity", "stockQuantity")) or 0,
        "category_id": parse_int(form_text(form, "category_id", "categoryId")),
        "spice_level_id": parse_int(form_text(form, "spice_level_id", "spiceLevelId")),
        "main_image": main_image,
        "additional_images": additional_images,
        "created_at": datetime.now(timezone.utc).isoformat(),
    })

    logger.info(f"Seller #{seller['id']} created product #{product['id']}: {product['name']}")
    return {"data": product}


@router.get(
    "/me",
    response_model=Envelope[list[dict[str, Any]]],
    responses={
        404: {"model": ErrorResponse, "description": "No seller profile"},
    },
)
def list_my_products(
    user: Record = Depends(require_user),
    store: RecordStore = Depends(get_record_store),
):
    """List products belonging to the caller's seller profile."""
    seller = find_seller(store, user)
    if seller is None:
        raise NotFoundError("Seller profile not found")
    return {"data": store.find(PRODUCTS, {"seller_id": seller["id"]})}

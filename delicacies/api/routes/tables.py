"""
Generic Table API Routes

Paging and record creation over the numbered catalogue tables the
storefront reads (categories, sellers, products, recipes...).
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from delicacies.api.dependencies import get_record_store
from delicacies.api.schemas import (
    Envelope,
    ErrorResponse,
    TablePageRequest,
    TablePageResponse,
)
from delicacies.storage.query import query_table
from delicacies.storage.record_store import RecordStore
from delicacies.storage.tables import resolve_table

router = APIRouter(prefix="/table", tags=["tables"])


@router.post(
    "/page/{table_id}",
    response_model=Envelope[TablePageResponse],
    responses={
        404: {"model": ErrorResponse, "description": "Unknown table"},
    },
)
def page_table(
    table_id: str,
    body: Optional[TablePageRequest] = None,
    store: RecordStore = Depends(get_record_store),
):
    """
    Filter, sort and page one table.

    Filters are ANDed together; VirtualCount is the number of records that
    passed the filters before paging.
    """
    collection = resolve_table(table_id)
    result = query_table(store, collection, (body or TablePageRequest()).to_query())
    return {"data": result.to_dict()}


@router.post(
    "/create/{table_id}",
    response_model=Envelope[dict[str, Any]],
    responses={
        404: {"model": ErrorResponse, "description": "Unknown table"},
    },
)
def create_table_record(
    table_id: str,
    record: Any = Body(default=None),
    store: RecordStore = Depends(get_record_store),
):
    """Insert a record as sent. The id is always assigned by the store."""
    collection = resolve_table(table_id)
    created = store.insert(collection, record if isinstance(record, dict) else {})
    return {"data": created}

"""
API Schemas for Bihari Delicacies

Pydantic models for request validation and response serialization:
- Response envelope
- Auth models
- Table paging models
- Seller banking and payment models

Design Decisions:
1. Every success body is {"data": ...}; failures are {"error": "..."}
2. Field names match what the storefront sends (camelCase, PascalCase for tables)
3. Records stay plain dicts: collections are schema-free
"""

from typing import Any, Generic, Optional, TypeVar, Union
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..storage.query import TableQuery

T = TypeVar("T")


# =============================================================================
# Envelope
# =============================================================================

class Envelope(BaseModel, Generic[T]):
    """Success wrapper."""

    data: T


class ErrorResponse(BaseModel):
    """Error response."""

    error: str


# =============================================================================
# Auth Schemas
# =============================================================================

class UserRole(str, Enum):
    """Account role."""
    USER = "user"
    SELLER = "seller"


class RegisterRequest(BaseModel):
    """User registration request."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    role: UserRole = UserRole.USER
    phone: Optional[str] = None
    address: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    """Public user payload."""

    ID: Any
    Name: str
    Email: Optional[str] = None
    Roles: str


# =============================================================================
# Table Schemas
# =============================================================================

class TablePageRequest(BaseModel):
    """Generic table paging request."""

    PageNo: int = 1
    PageSize: int = 20
    OrderByField: str = "id"
    IsAsc: bool = True
    Filters: Any = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "PageNo": 1,
                "PageSize": 10,
                "OrderByField": "price",
                "IsAsc": True,
                "Filters": [{"name": "price", "op": "LessThanOrEqual", "value": 500}],
            }
        }
    )

    def to_query(self) -> TableQuery:
        return TableQuery(
            page_no=self.PageNo,
            page_size=self.PageSize,
            order_by_field=self.OrderByField,
            is_asc=self.IsAsc,
            filters=self.Filters,
        )


class TablePageResponse(BaseModel):
    """One page of table records."""

    List: list[Any]
    VirtualCount: int


# =============================================================================
# Seller Schemas
# =============================================================================

class BankingDetailsRequest(BaseModel):
    """Seller payout account details."""

    accountHolderName: Optional[str] = None
    bankAccountNumber: Optional[Union[str, int]] = None
    ifsc: Optional[str] = None
    bankName: Optional[str] = None
    branch: Optional[str] = None
    taxId: Optional[str] = None


# =============================================================================
# Order & Payment Schemas
# =============================================================================

class OrderCreated(BaseModel):
    """Id of a stored order."""

    id: Any


class PaymentSimulation(BaseModel):
    """Result of a simulated payment. Always succeeds."""

    success: bool = True
    paymentId: str
    echo: dict[str, Any] = Field(default_factory=dict)


class UploadResult(BaseModel):
    """URL of a stored upload."""

    url: str


class HealthStatus(BaseModel):
    """Health check payload."""

    ok: bool = True

"""
Document schemas for the MongoDB record store.

Each Pydantic model declares the required fields of one collection. Unknown
fields are kept, since the storefront writes arbitrary shapes; only the
fields listed here are enforced on insert.
"""

from typing import Any, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "seller"]


class UserDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, description="Password hash")
    firstName: str
    lastName: str
    role: Role = "user"
    phone: Optional[str] = None
    address: Optional[str] = None
    isVerified: bool = False


class SellerDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    userId: Any = Field(..., description="Reference to users.id")
    business_name: Optional[str] = None
    owner_name: Optional[str] = None
    email: Optional[str] = None


class ProductDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    seller_id: Any = Field(..., description="Reference to sellers.id")
    name: str
    price: float = Field(..., ge=0)
    stock_quantity: int = 0
    additional_images: list[str] = Field(default_factory=list)


COLLECTION_SCHEMAS: dict[str, type[BaseModel]] = {
    "users": UserDocument,
    "sellers": SellerDocument,
    "products": ProductDocument,
}

"""
API Routes for Bihari Delicacies

Route modules:
- auth: Registration, login, logout and session lookup
- sellers: Seller profiles and banking details
- products: Seller product submission and listing
- uploads: Image upload and file serving
- orders: Order storage and payment simulation
- tables: Generic filter/sort/page and create over numbered tables
"""

from delicacies.api.routes.auth import router as auth_router
from delicacies.api.routes.sellers import router as sellers_router
from delicacies.api.routes.products import router as products_router
from delicacies.api.routes.uploads import router as uploads_router
from delicacies.api.routes.orders import router as orders_router
from delicacies.api.routes.tables import router as tables_router

__all__ = [
    "auth_router",
    "sellers_router",
    "products_router",
    "uploads_router",
    "orders_router",
    "tables_router",
]

"""
Bihari Delicacies - FastAPI Backend.

HTTP surface for the marketplace: auth, sellers, products, uploads, orders
and the generic table API.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_service_container,
    ServiceContainer,
)
from .schemas import (
    Envelope,
    ErrorResponse,
    RegisterRequest,
    LoginRequest,
    UserInfo,
    TablePageRequest,
    TablePageResponse,
    BankingDetailsRequest,
    HealthStatus,
)

__all__ = [
    "app",
    "create_app",
    "main",
    "Settings",
    "get_settings",
    "get_service_container",
    "ServiceContainer",
    "Envelope",
    "ErrorResponse",
    "RegisterRequest",
    "LoginRequest",
    "UserInfo",
    "TablePageRequest",
    "TablePageResponse",
    "BankingDetailsRequest",
    "HealthStatus",
]

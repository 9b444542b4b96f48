"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Service instances (record store, sessions, auth gateway, uploads)
- Authentication
"""

import os
from typing import Optional
from functools import lru_cache
from dataclasses import dataclass

from fastapi import Depends, Request
from loguru import logger

from ..exceptions import AuthenticationError
from ..storage.record_store import Record


SESSION_COOKIE = "sid"


# =============================================================================
# Configuration
# =============================================================================

def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Flat-file storage
    data_dir: str = "./data"

    # MongoDB (preferred when reachable)
    mongodb_uri: Optional[str] = None
    mongodb_db: str = "bihari_delicacies"
    mongodb_timeout_ms: int = 5000

    # SQL storage (used when set and MongoDB is unavailable)
    database_url: Optional[str] = None

    # Seed demonstration data into missing collections
    seed_demo_data: bool = True

    # File uploads
    upload_dir: str = "./uploads"
    upload_url_prefix: str = "/api/uploads"
    max_upload_size_mb: int = 5
    allowed_image_types: str = "image/png,image/jpeg,image/webp,image/gif"

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_requests_per_minute: int = 60
    # Comma-separated client-IP headers set by a trusted reverse proxy
    trusted_proxy_headers: str = ""

    # Cookies
    cookie_secure: bool = False

    # Routing
    api_prefix: str = "/api"

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            data_dir=os.getenv("DATA_DIR", cls.data_dir),
            mongodb_uri=os.getenv("MONGODB_URI") or None,
            mongodb_db=os.getenv("MONGODB_DB", cls.mongodb_db),
            mongodb_timeout_ms=int(os.getenv("MONGODB_TIMEOUT_MS", cls.mongodb_timeout_ms)),
            database_url=os.getenv("DATABASE_URL") or None,
            seed_demo_data=_env_flag("SEED_DEMO_DATA", "true"),
            upload_dir=os.getenv("UPLOAD_DIR", cls.upload_dir),
            upload_url_prefix=os.getenv("UPLOAD_URL_PREFIX", cls.upload_url_prefix),
            max_upload_size_mb=int(os.getenv("MAX_UPLOAD_SIZE_MB", cls.max_upload_size_mb)),
            allowed_image_types=os.getenv("ALLOWED_IMAGE_TYPES", cls.allowed_image_types),
            rate_limit_enabled=_env_flag("RATE_LIMIT_ENABLED", "true"),
            rate_limit_requests_per_minute=int(os.getenv("RATE_LIMIT_RPM", cls.rate_limit_requests_per_minute)),
            trusted_proxy_headers=os.getenv("TRUSTED_PROXY_HEADERS", cls.trusted_proxy_headers),
            cookie_secure=_env_flag("COOKIE_SECURE", "false"),
            api_prefix=os.getenv("API_PREFIX", cls.api_prefix),
            environment=os.getenv("DELICACIES_ENV", cls.environment),
            debug=_env_flag("DEBUG", "true"),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Dependencies (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    The record store backend is chosen on first access, which the app
    lifespan triggers at startup.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._record_store = None
        self._session_store = None
        self._auth_gateway = None
        self._upload_sink = None

    @property
    def record_store(self):
        """Get record store instance."""
        if self._record_store is None:
            from ..storage.record_store import create_record_store
            from ..storage.seed import seed_demo_data

            self._record_store = create_record_store(self.settings)
            logger.info(f"Using {self._record_store.backend_name} record store")
            if self.settings.seed_demo_data:
                seed_demo_data(self._record_store)
        return self._record_store

    @property
    def session_store(self):
        """Get session store instance."""
        if self._session_store is None:
            from ..auth.sessions import SessionStore
            self._session_store = SessionStore()
        return self._session_store

    @property
    def auth_gateway(self):
        """Get auth gateway instance."""
        if self._auth_gateway is None:
            from ..auth.gateway import AuthGateway
            self._auth_gateway = AuthGateway(
                store=self.record_store,
                sessions=self.session_store,
            )
        return self._auth_gateway

    @property
    def upload_sink(self):
        """Get upload sink instance."""
        if self._upload_sink is None:
            from ..storage.uploads import UploadSink
            self._upload_sink = UploadSink(
                upload_dir=self.settings.upload_dir,
                url_prefix=self.settings.upload_url_prefix,
                allowed_types=[
                    t.strip() for t in self.settings.allowed_image_types.split(",") if t.strip()
                ],
                max_bytes=self.settings.max_upload_size_mb * 1024 * 1024,
            )
        return self._upload_sink

    def close(self) -> None:
        if self._record_store is not None:
            self._record_store.close()


def get_service_container(request: Request) -> ServiceContainer:
    """Get the service container attached to the running app."""
    return request.app.state.services


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_app_settings(
    container: ServiceContainer = Depends(get_service_container),
) -> Settings:
    """Settings the running app was built with."""
    return container.settings


def get_record_store(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for record store."""
    return container.record_store


def get_session_store(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for session store."""
    return container.session_store


def get_auth_gateway(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for auth gateway."""
    return container.auth_gateway


def get_upload_sink(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for upload sink."""
    return container.upload_sink


# =============================================================================
# Authentication Dependencies
# =============================================================================

def get_session_id(request: Request) -> Optional[str]:
    """Extract the session cookie, if any."""
    return request.cookies.get(SESSION_COOKIE)


def get_optional_user(
    session_id: Optional[str] = Depends(get_session_id),
    gateway = Depends(get_auth_gateway),
) -> Optional[Record]:
    """Current user, or None when not logged in."""
    return gateway.current_user(session_id)


def require_user(
    user: Optional[Record] = Depends(get_optional_user),
) -> Record:
    """
    Require a logged-in user for protected endpoints.

    Raises:
        AuthenticationError: If no valid session is attached.
    """
    if user is None:
        raise AuthenticationError("Authentication required")
    return user

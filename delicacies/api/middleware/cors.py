"""
CORS Configuration

Configures Cross-Origin Resource Sharing settings. The storefront sends the
session cookie, so credentials are always allowed and origins are listed
explicitly or matched by pattern, never "*".
"""

from typing import List, Optional
from dataclasses import dataclass, field
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os


@dataclass
class CORSConfig:
    """CORS configuration settings."""

    allowed_origins: List[str] = field(default_factory=list)

    # Regex for origins such as any localhost port (Vite picks a free one)
    allowed_origin_regex: Optional[str] = None

    allow_credentials: bool = True

    allowed_methods: List[str] = field(default_factory=lambda: [
        "GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"
    ])

    allowed_headers: List[str] = field(default_factory=lambda: [
        "Accept",
        "Accept-Language",
        "Content-Type",
        "Content-Language",
        "Authorization",
        "X-Request-ID",
    ])

    expose_headers: List[str] = field(default_factory=lambda: [
        "X-Request-ID",
        "X-Rate-Limit-Remaining",
        "X-Rate-Limit-Reset",
    ])

    # Max age for preflight cache (in seconds)
    max_age: int = 3600


LOCALHOST_ORIGIN_REGEX = r"^http://(localhost|127\.0\.0\.1|\[::\]):\d+$"


def get_cors_config(environment: Optional[str] = None) -> CORSConfig:
    """Get CORS configuration for the environment."""
    if environment is None:
        environment = os.getenv("DELICACIES_ENV", "development")

    if environment == "production":
        config = CORSConfig(max_age=7200)
    else:
        config = CORSConfig(allowed_origin_regex=LOCALHOST_ORIGIN_REGEX)

    extra_origins = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if extra_origins:
        config.allowed_origins.extend(
            origin.strip() for origin in extra_origins.split(",") if origin.strip()
        )

    return config


def setup_cors(app: FastAPI, config: Optional[CORSConfig] = None) -> None:
    """
    Configure CORS middleware for the FastAPI application.

    Args:
        app: FastAPI application instance.
        config: CORS configuration. If None, loads from environment.
    """
    if config is None:
        config = get_cors_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_origin_regex=config.allowed_origin_regex,
        allow_credentials=config.allow_credentials,
        allow_methods=config.allowed_methods,
        allow_headers=config.allowed_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )

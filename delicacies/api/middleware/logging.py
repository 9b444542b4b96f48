"""
Request/Response logging middleware.

Provides structured logging for all API requests with:
- Request timing
- Correlation IDs for tracing
- Redaction of passwords, account numbers and session cookies
"""

import time
import uuid
import json
import logging
from typing import Optional, Callable, Set, Any, Dict
from dataclasses import dataclass, field
from contextvars import ContextVar

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for request ID (accessible throughout request lifecycle)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("delicacies.api")


@dataclass
class LoggingConfig:
    """Configuration for request logging."""

    enabled: bool = True

    # Log JSON request bodies (multipart bodies are never logged)
    log_request_body: bool = False

    # Maximum body size to log (bytes)
    max_body_log_size: int = 10000

    excluded_paths: Set[str] = field(default_factory=lambda: {
        "/api/health",
        "/favicon.ico",
    })

    # Headers to exclude from logging (sensitive)
    excluded_headers: Set[str] = field(default_factory=lambda: {
        "authorization",
        "cookie",
        "set-cookie",
    })

    # Fields to redact in request bodies
    redacted_fields: Set[str] = field(default_factory=lambda: {
        "password",
        "token",
        "secret",
        "bankaccountnumber",
        "accountnumber",
        "ifsc",
        "taxid",
        "card_number",
        "cvv",
    })

    success_log_level: int = logging.INFO
    error_log_level: int = logging.WARNING

    # Slow request threshold (seconds)
    slow_request_threshold: float = 2.0

    request_id_header: str = "X-Request-ID"


class StructuredLogFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in JSON format for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if hasattr(record, "request_data"):
            log_data["request"] = record.request_data
        if hasattr(record, "response_data"):
            log_data["response"] = record.response_data
        if hasattr(record, "duration_ms"):
            log_data["duration_ms"] = record.duration_ms

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def redact_sensitive_data(
    data: Any,
    redacted_fields: Set[str],
    replacement: str = "[REDACTED]",
) -> Any:
    """
    Recursively redact sensitive fields from data structure.

    Args:
        data: Data to redact (dict, list, or primitive).
        redacted_fields: Set of lower-cased field names to redact.
        replacement: Replacement string for redacted values.

    Returns:
        Data with sensitive fields redacted.
    """
    if isinstance(data, dict):
        return {
            key: replacement if str(key).lower() in redacted_fields else redact_sensitive_data(value, redacted_fields, replacement)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [redact_sensitive_data(item, redacted_fields, replacement) for item in data]
    else:
        return data


def get_request_id() -> str:
    """Get current request ID from context."""
    return request_id_var.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for request/response logging.
    """

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    def _should_log(self, path: str) -> bool:
        return path not in self.config.excluded_paths

    def _filter_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        return {
            key: value if key.lower() not in self.config.excluded_headers else "[REDACTED]"
            for key, value in headers.items()
        }

    async def _get_request_body(self, request: Request) -> Optional[str]:
        """Safely get a JSON request body for logging."""
        if "application/json" not in request.headers.get("content-type", ""):
            return None

        body = await request.body()
        if len(body) > self.config.max_body_log_size:
            return f"[BODY TOO LARGE: {len(body)} bytes]"

        try:
            body_json = json.loads(body)
        except ValueError:
            return body.decode("utf-8", errors="replace")
        return json.dumps(redact_sensitive_data(body_json, self.config.redacted_fields))

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(
            self.config.request_id_header,
            str(uuid.uuid4())[:8]
        )
        request_id_var.set(request_id)

        if not self.config.enabled or not self._should_log(request.url.path):
            response = await call_next(request)
            response.headers[self.config.request_id_header] = request_id
            return response

        start_time = time.time()

        request_data = {
            "method": request.method,
            "path": request.url.path,
            "query": str(request.url.query) if request.url.query else None,
            "headers": self._filter_headers(dict(request.headers)),
            "client_ip": request.client.host if request.client else None,
        }

        if self.config.log_request_body:
            body = await self._get_request_body(request)
            if body:
                request_data["body"] = body

        response = await call_next(request)

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)

        response.headers[self.config.request_id_header] = request_id

        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = self.config.error_log_level
        elif duration > self.config.slow_request_threshold:
            log_level = logging.WARNING
        else:
            log_level = self.config.success_log_level

        message = f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)"
        if duration > self.config.slow_request_threshold:
            message = f"[SLOW] {message}"

        logger.log(log_level, message, extra={
            "request_data": request_data,
            "response_data": {
                "status_code": response.status_code,
                "headers": self._filter_headers(dict(response.headers)),
            },
            "duration_ms": duration_ms,
        })

        return response


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
    structured: bool = True,
) -> None:
    """
    Configure logging middleware and formatters.

    Args:
        app: FastAPI application instance.
        config: Logging configuration.
        structured: Use JSON structured logging format.
    """
    if config is None:
        config = LoggingConfig()

    if structured:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredLogFormatter())

        delicacies_logger = logging.getLogger("delicacies")
        if not any(isinstance(h.formatter, StructuredLogFormatter) for h in delicacies_logger.handlers):
            delicacies_logger.addHandler(handler)
        delicacies_logger.setLevel(logging.INFO)

    app.add_middleware(RequestLoggingMiddleware, config=config)

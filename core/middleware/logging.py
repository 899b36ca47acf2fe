"""
Structured request logging with PII masking.

Candidate emails, phone numbers and credentials never reach the logs in
clear text: headers, query params and (optionally) JSON bodies are masked
before being emitted as a single JSON line per event.
"""

import json
import logging
import re
import time
import traceback
import uuid
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


SENSITIVE_FIELD_PATTERN = re.compile(
    r"pass(word|wd)?|pwd|token|api[_-]?key|secret|authorization|bearer|cookie|"
    r"session|csrf|credit[_-]?card|cvv|ssn|private[_-]?key|signature",
    re.IGNORECASE,
)

PII_PATTERNS = [
    (re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'), '[EMAIL]'),
    (re.compile(r'\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b'), '[CARD]'),
    (re.compile(r'\b\d{3}-\d{2}-\d{4}\b'), '[SSN]'),
    (re.compile(r'\+\d{1,3}[-.\s]?\d{1,4}[-.\s]?\d{1,4}[-.\s]?\d{1,9}'), '[PHONE]'),
    (re.compile(r'\b\d{3}[-.]?\d{3}[-.]?\d{4}\b'), '[PHONE]'),
    (re.compile(r'\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b'), '[IP]'),
]

SKIP_PATHS = ("/health", "/ready")


def is_sensitive_field(field_name: str) -> bool:
    return bool(SENSITIVE_FIELD_PATTERN.search(field_name))


def mask_pii(text: str) -> str:
    """Replace emails, phones, cards, SSNs and IPs in free text."""
    for pattern, replacement in PII_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def mask_sensitive_data(data: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """
    Recursively mask sensitive values in dicts, lists and strings.

    Args:
        data: Data structure to mask
        depth: Current recursion depth
        max_depth: Depth after which values are replaced wholesale

    Returns:
        A masked copy of data
    """
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"

    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if is_sensitive_field(str(key))
            else mask_sensitive_data(value, depth + 1, max_depth)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive_data(item, depth + 1, max_depth) for item in data]
    if isinstance(data, str):
        return mask_pii(data)
    return data


def mask_headers(headers: dict) -> dict:
    """Mask sensitive headers, keeping the auth scheme visible."""
    masked = {}
    for key, value in headers.items():
        if not is_sensitive_field(key):
            masked[key] = value
            continue
        scheme, _, token = str(value).partition(" ")
        if key.lower() == "authorization" and token:
            masked[key] = f"{scheme} [REDACTED]"
        else:
            masked[key] = "[REDACTED]"
    return masked


def should_log_request(path: str) -> bool:
    return not path.startswith(SKIP_PATHS)


def get_client_ip(request: Request) -> str:
    """Client IPv4 with the last octet hidden; anything else is 'unknown'."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else "unknown"

    parts = ip.split(".")
    if len(parts) == 4:
        return f"{parts[0]}.{parts[1]}.{parts[2]}.xxx"
    return "unknown"


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs request_started / request_completed events as JSON and propagates
    an x-request-id header.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        max_body_size: int = 1024,
    ):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        if not should_log_request(request.url.path):
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            return response

        started = time.perf_counter()
        event = {
            "event": "request_started",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": mask_sensitive_data(dict(request.query_params)),
            "client_ip": get_client_ip(request),
            "user_agent": request.headers.get("user-agent", "unknown"),
            "headers": mask_headers(dict(request.headers)),
        }
        if self.log_request_body and request.method in ("POST", "PUT", "PATCH"):
            body = await self._read_json_body(request)
            if body is not None:
                event["body"] = mask_sensitive_data(body)
        logger.info(json.dumps(event, default=str))

        response = None
        error = None
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            error = {"type": type(exc).__name__, "message": mask_pii(str(exc))}
            raise
        finally:
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            status_code = response.status_code if response is not None else 500
            completed = {
                "event": "request_completed",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": duration_ms,
            }
            if error:
                completed["error"] = error
            if duration_ms > 5000:
                completed["performance"] = "slow"

            if status_code >= 500:
                logger.error(json.dumps(completed))
            elif status_code >= 400:
                logger.warning(json.dumps(completed))
            else:
                logger.info(json.dumps(completed))

            if response is not None:
                response.headers["x-request-id"] = request_id

    async def _read_json_body(self, request: Request) -> Any:
        if "application/json" not in request.headers.get("content-type", ""):
            return None
        try:
            raw = await request.body()
        except Exception as e:
            logger.debug(f"Could not read request body: {e}")
            return None
        if len(raw) > self.max_body_size:
            return {"_truncated": True, "_size": len(raw)}
        try:
            return json.loads(raw)
        except ValueError:
            return None


class StructuredFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in ("request_id", "user_id", "task_id"):
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }
        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", json_logs: bool = True):
    """
    Configure application-wide logging on the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Whether to format logs as JSON
    """
    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    if json_logs:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

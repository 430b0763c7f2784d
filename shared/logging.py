"""
Shared logging configuration for the todos proxy.

Every line is a JSON object. Lines emitted while a request is in flight carry
the request id and the client address that admission control keys on, so a
rejection warning from the limiter can be matched to its access log line.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Callable, Dict, Optional
from contextvars import ContextVar

# Per-request context, bound by the request middleware
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
client_var: ContextVar[Optional[str]] = ContextVar('client', default=None)

Processor = Callable[[Any, str, Dict[str, Any]], Dict[str, Any]]


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            service_tagger(service_name),
            add_request_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def service_tagger(service_name: str) -> Processor:
    """Build a processor that tags events with the configured service name."""

    def add_service(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def add_request_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the in-flight request id and client address, when bound."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    client = client_var.get()
    if client:
        event_dict.setdefault("client", client)

    return event_dict


def bind_request_context(request_id: Optional[str] = None, client: Optional[str] = None) -> str:
    """Bind the current request; a missing request id is generated."""
    if not request_id:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    client_var.set(client)
    return request_id


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)
    client_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

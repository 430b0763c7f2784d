"""
Unit tests for the shared logging processors.
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.logging import (
    add_request_context,
    bind_request_context,
    clear_context,
    client_var,
    request_id_var,
    service_tagger,
)


def test_bind_request_context_sets_id_and_client():
    try:
        request_id = bind_request_context("req-1", "10.0.0.1")

        assert request_id == "req-1"
        assert request_id_var.get() == "req-1"
        assert client_var.get() == "10.0.0.1"
    finally:
        clear_context()

    assert request_id_var.get() is None
    assert client_var.get() is None


def test_bind_request_context_generates_missing_id():
    try:
        first = bind_request_context(None, "10.0.0.1")
        second = bind_request_context("", "10.0.0.1")
    finally:
        clear_context()

    assert first and second
    assert first != second


def test_add_request_context_attaches_bound_values():
    try:
        bind_request_context("req-2", "10.0.0.2")
        event = add_request_context(None, "warning", {"event": "Rate limit exceeded"})
    finally:
        clear_context()

    assert event == {
        "event": "Rate limit exceeded",
        "request_id": "req-2",
        "client": "10.0.0.2",
    }


def test_add_request_context_keeps_explicit_client():
    try:
        bind_request_context("req-3", "10.0.0.3")
        event = add_request_context(None, "info", {"event": "x", "client": "override"})
    finally:
        clear_context()

    assert event["client"] == "override"


def test_add_request_context_outside_request_is_noop():
    clear_context()

    assert add_request_context(None, "info", {"event": "Server running"}) == {"event": "Server running"}


def test_service_tagger_uses_configured_name():
    add_service = service_tagger("proxy")

    assert add_service(None, "info", {"event": "x"})["service"] == "proxy"
    assert add_service(None, "info", {"event": "x", "service": "cli"})["service"] == "cli"

"""
Unit Tests for the Ledger Client

Python 3.8 Compatible

Covers:
- Token acquired before every call, bearer header attached
- Body serialized only for write-style methods
- Uniform LedgerError shape for structured, unstructured and transport errors
"""

import os
import sys
from typing import Any, Optional
from unittest.mock import Mock

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from app.ledger.errors import AuthError, LedgerError
from app.ledger.ledger_client import LedgerClient
from app.ledger.token_lease import TokenLeaseManager


def ledger_response(status: int = 200, body: Optional[Any] = None, text: str = "", reason: str = "OK") -> Mock:
    response = Mock(spec=requests.Response)
    response.status_code = status
    response.reason = reason
    response.text = text
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def token_manager() -> Mock:
    manager = Mock(spec=TokenLeaseManager)
    manager.acquire_token.return_value = "bearer-123"
    return manager


@pytest.fixture
def session() -> Mock:
    return Mock(spec=requests.Session)


@pytest.fixture
def client(token_manager: Mock, session: Mock) -> LedgerClient:
    return LedgerClient("https://ledger.test/", token_manager, timeout=5.0, session=session)


class TestInvoke:

    def test_get_sends_no_body(self, client, session, token_manager) -> None:
        session.request.return_value = ledger_response(body={"offset": 7})

        result = client.invoke("state/ledger-end", {"ignored": True}, method="GET")

        assert result == {"offset": 7}
        token_manager.acquire_token.assert_called_once()
        args, kwargs = session.request.call_args
        assert args == ("GET", "https://ledger.test/v2/state/ledger-end")
        assert "json" not in kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer bearer-123"
        assert kwargs["timeout"] == 5.0

    def test_post_sends_json_body(self, client, session) -> None:
        session.request.return_value = ledger_response(body=[])
        body = {"filter": {}, "verbose": True}

        client.invoke("state/active-contracts", body)

        _, kwargs = session.request.call_args
        assert kwargs["json"] == body
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_token_failure_stops_before_request(self, client, session, token_manager) -> None:
        token_manager.acquire_token.side_effect = AuthError("exchange failed")

        with pytest.raises(AuthError):
            client.invoke("state/ledger-end", method="GET")

        session.request.assert_not_called()


class TestErrors:

    def test_structured_ledger_error(self, client, session) -> None:
        body = {"code": "CONTRACT_NOT_FOUND", "cause": "Contract could not be found", "grpcCodeValue": 5}
        session.request.return_value = ledger_response(404, body=body, reason="Not Found")

        with pytest.raises(LedgerError) as exc_info:
            client.invoke("commands/submit-and-wait-for-transaction", {"commands": {}})

        error = exc_info.value
        assert error.status_code == 404
        assert error.http_status == 404
        assert error.code == "CONTRACT_NOT_FOUND"
        assert error.message == "Contract could not be found"
        assert error.raw_details == body
        assert error.to_dict()["details"] == body

    def test_unstructured_http_error(self, client, session) -> None:
        session.request.return_value = ledger_response(502, text="Bad Gateway", reason="Bad Gateway")

        with pytest.raises(LedgerError) as exc_info:
            client.invoke("state/ledger-end", method="GET")

        assert exc_info.value.code == "LEDGER_HTTP_ERROR"
        assert exc_info.value.http_status == 502
        assert exc_info.value.raw_details == "Bad Gateway"

    def test_transport_error(self, client, session) -> None:
        session.request.side_effect = requests.Timeout("timed out")

        with pytest.raises(LedgerError) as exc_info:
            client.invoke("state/ledger-end", method="GET")

        assert exc_info.value.code == "LEDGER_TRANSPORT_ERROR"
        assert exc_info.value.status_code is None
        assert exc_info.value.http_status == 500

    def test_non_json_success_body(self, client, session) -> None:
        session.request.return_value = ledger_response(200, text="<html>")

        with pytest.raises(LedgerError) as exc_info:
            client.invoke("state/ledger-end", method="GET")

        assert exc_info.value.code == "LEDGER_INVALID_RESPONSE"
        assert exc_info.value.http_status == 502


class TestLifecycle:

    def test_context_manager_closes_session(self, token_manager, session) -> None:
        with LedgerClient("https://ledger.test", token_manager, session=session) as client:
            assert client.url_for("/state/ledger-end") == "https://ledger.test/v2/state/ledger-end"

        session.close.assert_called_once()

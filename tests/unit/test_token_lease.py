"""
Unit Tests for the Token Lease Manager

Python 3.8 Compatible

Covers:
- Cached lease reuse inside the safety margin
- Expiry computation: now + expires_in - safety_margin
- Failed exchanges never fall back to a stale token
- Compare-and-swap install keeps the newest lease
"""

import os
import sys
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from app.ledger.errors import AuthError
from app.ledger.token_lease import CredentialLease, TokenLeaseManager


# =============================================================================
# Helpers
# =============================================================================

class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def auth_response(status: int = 200, body: Optional[Any] = None, text: str = "") -> Mock:
    response = Mock(spec=requests.Response)
    response.status_code = status
    response.reason = "Unauthorized" if status == 401 else "OK"
    response.text = text
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


def make_manager(responses: List[Mock], clock: Optional[FakeClock] = None, **kwargs: Any) -> TokenLeaseManager:
    session = Mock(spec=requests.Session)
    session.post.side_effect = responses
    return TokenLeaseManager(
        auth_url="https://auth.test/oauth/token",
        client_id="gateway",
        client_secret="s3cret",
        audience="https://ledger.test",
        session=session,
        clock=clock or FakeClock(),
        **kwargs
    )


# =============================================================================
# Tests
# =============================================================================

class TestAcquireToken:

    def test_exchange_payload(self) -> None:
        manager = make_manager([auth_response(body={"access_token": "tok-1", "expires_in": 3600})])

        assert manager.acquire_token() == "tok-1"

        _, kwargs = manager._session.post.call_args
        payload: Dict[str, Any] = kwargs["json"]
        assert payload == {
            "client_id": "gateway",
            "client_secret": "s3cret",
            "grant_type": "client_credentials",
            "audience": "https://ledger.test",
        }

    def test_audience_omitted_when_unset(self) -> None:
        session = Mock(spec=requests.Session)
        session.post.return_value = auth_response(body={"access_token": "t", "expires_in": 60})
        manager = TokenLeaseManager("https://auth.test", "id", "secret", session=session)

        manager.acquire_token()

        assert "audience" not in session.post.call_args[1]["json"]

    def test_cached_token_reused(self) -> None:
        clock = FakeClock()
        manager = make_manager(
            [auth_response(body={"access_token": "tok-1", "expires_in": 3600})], clock
        )

        manager.acquire_token()
        clock.now += 1000
        assert manager.acquire_token() == "tok-1"
        assert manager._session.post.call_count == 1

    def test_expiry_subtracts_safety_margin(self) -> None:
        clock = FakeClock(1000.0)
        manager = make_manager(
            [auth_response(body={"access_token": "tok-1", "expires_in": 3600})],
            clock,
            safety_margin_seconds=60,
        )

        manager.acquire_token()

        assert manager.lease.expires_at == 1000.0 + 3600 - 60

    def test_refresh_inside_safety_margin(self) -> None:
        clock = FakeClock(1000.0)
        manager = make_manager(
            [
                auth_response(body={"access_token": "tok-1", "expires_in": 3600}),
                auth_response(body={"access_token": "tok-2", "expires_in": 3600}),
            ],
            clock,
            safety_margin_seconds=60,
        )

        manager.acquire_token()
        clock.now = 1000.0 + 3600 - 60
        assert manager.acquire_token() == "tok-2"

    def test_missing_expires_in_uses_default_lifetime(self) -> None:
        clock = FakeClock(0.0)
        manager = make_manager([auth_response(body={"access_token": "tok"})], clock)

        manager.acquire_token()

        expected = TokenLeaseManager.DEFAULT_TOKEN_LIFETIME_SECONDS - 60
        assert manager.lease.expires_at == expected


class TestExchangeFailures:

    def test_rejected_exchange_raises_auth_error(self) -> None:
        manager = make_manager(
            [auth_response(401, body={"error": "invalid_client", "error_description": "bad secret"})]
        )

        with pytest.raises(AuthError) as exc_info:
            manager.acquire_token()

        assert "bad secret" in exc_info.value.message
        assert exc_info.value.status_code == 401
        assert exc_info.value.error_code == "AUTH_FAILED"

    def test_transport_failure(self) -> None:
        manager = make_manager([requests.ConnectionError("refused")])

        with pytest.raises(AuthError):
            manager.acquire_token()

    def test_missing_access_token(self) -> None:
        manager = make_manager([auth_response(body={"expires_in": 60})])

        with pytest.raises(AuthError):
            manager.acquire_token()

    def test_non_json_body(self) -> None:
        manager = make_manager([auth_response(body=None, text="<html>")])

        with pytest.raises(AuthError):
            manager.acquire_token()

    def test_stale_token_never_substituted(self) -> None:
        clock = FakeClock(0.0)
        manager = make_manager(
            [
                auth_response(body={"access_token": "tok-1", "expires_in": 120}),
                auth_response(503, body={"message": "auth down"}),
            ],
            clock,
        )
        manager.acquire_token()
        clock.now = 500.0

        with pytest.raises(AuthError):
            manager.acquire_token()

        # The expired lease stays installed but is not handed out
        assert manager.lease.token == "tok-1"
        assert not manager.lease.is_valid(clock.now)


class TestCompareAndSwap:

    def test_older_lease_does_not_replace_newer(self) -> None:
        manager = make_manager([])
        newer = CredentialLease(token="newer", expires_at=2000.0)
        older = CredentialLease(token="older", expires_at=1500.0)

        assert manager._install(newer) is newer
        assert manager._install(older) is newer
        assert manager.lease is newer

    def test_newer_lease_replaces_older(self) -> None:
        manager = make_manager([])
        manager._install(CredentialLease(token="a", expires_at=10.0))

        installed = manager._install(CredentialLease(token="b", expires_at=20.0))

        assert installed.token == "b"
        assert manager.lease.token == "b"

    def test_expired_lease_replaced_even_by_earlier_expiry(self) -> None:
        clock = FakeClock(5000.0)
        manager = make_manager([], clock)
        manager._install(CredentialLease(token="expired", expires_at=4000.0))

        installed = manager._install(CredentialLease(token="fresh", expires_at=3900.0))

        assert installed.token == "fresh"
        assert manager.lease.token == "fresh"

    def test_short_lifetime_after_expiry_returns_fresh_token(self) -> None:
        clock = FakeClock(0.0)
        manager = make_manager(
            [
                auth_response(body={"access_token": "old", "expires_in": 3600}),
                auth_response(body={"access_token": "new", "expires_in": 30}),
            ],
            clock,
            safety_margin_seconds=60,
        )
        assert manager.acquire_token() == "old"
        clock.now = 3541.0

        assert manager.acquire_token() == "new"
        assert manager.lease.is_valid(clock.now)
        assert manager.lease.expires_at == 3541.0 + 15

    def test_lease_validity_boundary(self) -> None:
        lease = CredentialLease(token="t", expires_at=100.0)
        assert lease.is_valid(99.9)
        assert not lease.is_valid(100.0)

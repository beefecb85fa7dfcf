"""
============================================================================
Ledger Staking Gateway v1.0.0
Integration Test: HTTP API Endpoints
============================================================================

Reliability Level: CORE
Input Constraints: FastAPI TestClient, services wired to an in-memory ledger
Side Effects: None (FakeLedger stands in for the JSON API)

Covers:
- Success and error envelopes on every router
- Status mapping: 400 validation, 404 pool, 400 staker, ledger status, 500
- Malformed JSON bodies answered with VALIDATION_ERROR
- System endpoints (/api/health, /metrics)

Python 3.8 Compatible
============================================================================
"""

import os
import sys
from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.dependencies import get_balance_service, get_staking_service, get_transfer_service
from app.ledger.errors import LedgerError
from app.main import app
from ledger_fakes import DSO, OPERATOR, STAKE_TEMPLATE, WEI
from services.staking_service import StakingService

STAKER = "alice::1220cc"
OUTSIDER = "mallory::1220dd"
RECEIVER = "bob::1220ee"


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def client(staking_service, transfer_service, balance_service):
    """
    TestClient with every service getter overridden.

    Used without a context manager so the lifespan (environment config) does
    not run.
    """
    app.dependency_overrides[get_staking_service] = lambda: staking_service
    app.dependency_overrides[get_transfer_service] = lambda: transfer_service
    app.dependency_overrides[get_balance_service] = lambda: balance_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def assert_error(response, status: int, code: str) -> dict:
    assert response.status_code == status
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    assert "timestamp" in body
    return body


# ============================================================================
# Staking Endpoints
# ============================================================================

class TestStakingEndpoints:

    def test_config(self, client) -> None:
        response = client.get("/api/staking/config")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["operator"] == OPERATOR
        assert "clientSecret" not in body["data"]

    def test_ledger_end(self, client) -> None:
        response = client.get("/api/staking/ledger-end")

        assert response.status_code == 200
        assert response.json()["data"] == {"offset": 42}

    def test_deposit_success(self, client, fake_ledger) -> None:
        pool = fake_ledger.add_pool(stakers=[STAKER])
        holding = fake_ledger.add_holding(STAKER, "100")

        response = client.post("/api/staking/pool/deposit", json={
            "poolContractId": pool,
            "staker": STAKER,
            "holdingCid": holding,
            "amount": "40",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["amount"] == "40"
        assert data["poolContractId"] == pool
        assert fake_ledger.active[data["stakeContractId"]]["templateId"] == STAKE_TEMPLATE
        assert data["transaction"]["updateId"] == "update-1"

    def test_deposit_missing_fields(self, client, fake_ledger) -> None:
        response = client.post("/api/staking/pool/deposit", json={"staker": STAKER})

        body = assert_error(response, 400, "VALIDATION_ERROR")
        assert body["error"]["message"] == (
            "Missing required fields: poolContractId, holdingCid, amount"
        )
        assert fake_ledger.calls == []

    def test_deposit_non_positive_amount(self, client, fake_ledger) -> None:
        response = client.post("/api/staking/pool/deposit", json={
            "poolContractId": "p", "staker": STAKER, "holdingCid": "h", "amount": "-1",
        })

        assert_error(response, 400, "VALIDATION_ERROR")
        assert fake_ledger.calls == []

    def test_deposit_unknown_pool(self, client, fake_ledger) -> None:
        holding = fake_ledger.add_holding(STAKER, "100")

        response = client.post("/api/staking/pool/deposit", json={
            "poolContractId": "00missing", "staker": STAKER,
            "holdingCid": holding, "amount": "1",
        })

        assert_error(response, 404, "POOL_NOT_FOUND")
        assert fake_ledger.submissions() == []

    def test_deposit_unauthorized_staker(self, client, fake_ledger) -> None:
        pool = fake_ledger.add_pool(stakers=[STAKER])
        holding = fake_ledger.add_holding(OUTSIDER, "100")

        response = client.post("/api/staking/pool/deposit", json={
            "poolContractId": pool, "staker": OUTSIDER,
            "holdingCid": holding, "amount": "1",
        })

        body = assert_error(response, 400, "STAKER_NOT_AUTHORIZED")
        assert OUTSIDER in body["error"]["message"]
        assert fake_ledger.submissions() == []

    def test_deposit_insufficient(self, client, fake_ledger) -> None:
        pool = fake_ledger.add_pool(stakers=[STAKER])
        holding = fake_ledger.add_holding(STAKER, "5")

        response = client.post("/api/staking/pool/deposit", json={
            "poolContractId": pool, "staker": STAKER,
            "holdingCid": holding, "amount": "5.0000000001",
        })

        assert_error(response, 400, "INSUFFICIENT_BALANCE")

    def test_withdraw_surfaces_ledger_status(self, client, fake_ledger) -> None:
        stake = fake_ledger.create(STAKE_TEMPLATE, {
            "staker": STAKER, "operator": OPERATOR, "issuer": DSO, "amount": "10",
        })

        response = client.post("/api/staking/stake/withdraw", json={
            "stakeContractId": stake, "staker": OUTSIDER,
        })

        body = assert_error(response, 403, "DAML_AUTHORIZATION_ERROR")
        assert "missing authorization" in body["error"]["message"]

    def test_withdraw_success(self, client, fake_ledger) -> None:
        stake = fake_ledger.create(STAKE_TEMPLATE, {
            "staker": STAKER, "operator": OPERATOR, "issuer": DSO, "amount": "10",
        })

        response = client.post("/api/staking/stake/withdraw", json={
            "stakeContractId": stake, "staker": STAKER,
        })

        assert response.status_code == 200
        holding_id = response.json()["data"]["holdingContractId"]
        assert fake_ledger.active[holding_id]["createArgument"]["owner"] == STAKER

    def test_pool_lifecycle(self, client, fake_ledger) -> None:
        created = client.post("/api/staking/pool/create", json={})
        assert created.status_code == 200
        pool = created.json()["data"]["contractId"]
        assert created.json()["data"]["issuer"] == DSO

        added = client.post("/api/staking/pool/add-staker", json={
            "poolContractId": pool, "newStaker": STAKER,
        })
        assert added.status_code == 200
        new_pool = added.json()["data"]["newPoolContractId"]
        assert new_pool != pool

        fetched = client.get(f"/api/staking/pool/{new_pool}")
        assert fetched.json()["data"]["stakers"] == [STAKER]

        listed = client.get("/api/staking/pools")
        assert listed.json()["data"]["count"] == 1

    def test_get_unknown_pool(self, client) -> None:
        assert_error(client.get("/api/staking/pool/00nope"), 404, "POOL_NOT_FOUND")

    def test_holdings_view(self, client, fake_ledger) -> None:
        fake_ledger.add_holding(STAKER, "7")

        response = client.get("/api/staking/holdings", params={"owner": STAKER})

        data = response.json()["data"]
        assert data["count"] == 1
        assert data["holdings"][0]["isDefaultIssuer"] is True


# ============================================================================
# Transfer Endpoints
# ============================================================================

class TestTransferEndpoints:

    def test_direct_transfer(self, client, fake_ledger) -> None:
        fake_ledger.add_holding(STAKER, str(int(5 * WEI)))

        response = client.post("/api/transfer/direct", json={
            "sender": STAKER, "receiver": RECEIVER, "amount": "1.5",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["transferDetails"]["amount"] == "1.5"
        assert data["transferDetails"]["from"] == STAKER
        owners = {c["owner"] for c in data["newContracts"]}
        assert owners == {STAKER, RECEIVER}

    def test_transfer_insufficient(self, client, fake_ledger) -> None:
        fake_ledger.add_holding(STAKER, str(int(Decimal("0.5") * WEI)))

        response = client.post("/api/transfer/direct", json={
            "sender": STAKER, "receiver": RECEIVER, "amount": "1",
        })

        assert_error(response, 400, "INSUFFICIENT_BALANCE")
        assert fake_ledger.submissions() == []

    def test_transfer_missing_fields(self, client) -> None:
        response = client.post("/api/transfer/direct", json={"sender": STAKER})

        body = assert_error(response, 400, "VALIDATION_ERROR")
        assert body["error"]["message"] == "Missing required fields: receiver, amount"

    def test_history(self, client, fake_ledger) -> None:
        fake_ledger.add_holding(STAKER, "1")

        response = client.get(f"/api/transfer/history/{STAKER}")

        data = response.json()["data"]
        assert data["partyId"] == STAKER
        assert data["count"] == 1


# ============================================================================
# Balance Endpoints
# ============================================================================

class TestBalanceEndpoints:

    def test_balance_health(self, client) -> None:
        body = client.get("/api/balance/health").json()
        assert body["status"] == "healthy"

    def test_balance_by_owner(self, client, fake_ledger) -> None:
        fake_ledger.add_holding(OPERATOR, "10")
        fake_ledger.add_holding(STAKER, "3", issuer=OPERATOR)

        response = client.get(f"/api/balance/balance/{STAKER}")

        body = response.json()
        assert body["owner"] == STAKER
        assert body["data"]["totalBalance"] == "3"
        assert body["data"]["filteredOut"] == 1

    def test_advanced_query_echoes_params(self, client, fake_ledger) -> None:
        fake_ledger.add_holding(STAKER, "2")

        response = client.post("/api/balance/balance/query", json={"partyId": STAKER})

        body = response.json()
        assert body["query"] == {"partyId": STAKER, "ownerAddress": "all"}
        assert body["data"]["totalBalance"] == "2"

    def test_contracts_by_owner(self, client, fake_ledger) -> None:
        fake_ledger.add_holding(OPERATOR, "4")

        data = client.get(f"/api/balance/contracts/{OPERATOR}").json()["data"]

        assert set(data) == {"contracts", "count", "totalBalance"}
        assert data["count"] == 1


# ============================================================================
# Error Handling and System Endpoints
# ============================================================================

class TestErrorHandling:

    def test_malformed_json_body(self, client, fake_ledger) -> None:
        response = client.post(
            "/api/transfer/direct",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert_error(response, 400, "VALIDATION_ERROR")
        assert fake_ledger.calls == []

    def test_ledger_error_without_status_is_500(self, client, fake_ledger) -> None:
        fake_ledger.ledger_end_error = LedgerError("connection reset")

        response = client.get("/api/staking/ledger-end")

        assert_error(response, 500, "LEDGER_ERROR")

    def test_unhandled_exception_is_internal_error(self) -> None:
        service = Mock(spec=StakingService)
        service.get_public_config.side_effect = RuntimeError("boom")
        app.dependency_overrides[get_staking_service] = lambda: service
        try:
            client = TestClient(app, raise_server_exceptions=False)
            response = client.get("/api/staking/config")
        finally:
            app.dependency_overrides.clear()

        body = assert_error(response, 500, "INTERNAL_ERROR")
        assert "boom" not in body["error"]["message"]

    def test_cors_headers_on_cross_origin_request(self, client) -> None:
        response = client.get("/api/health", headers={"Origin": "https://ui.test"})

        assert "access-control-allow-origin" in response.headers

    def test_health(self, client) -> None:
        body = client.get("/api/health").json()

        assert body["success"] is True
        assert body["status"] == "healthy"
        assert body["version"] == "1.0.0"

    def test_metrics_exposed(self, client, fake_ledger) -> None:
        pool = fake_ledger.add_pool(stakers=[])
        client.post("/api/staking/pool/deposit", json={
            "poolContractId": pool, "staker": STAKER, "holdingCid": "h", "amount": "1",
        })

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "ledger_precondition_failures_total" in response.text

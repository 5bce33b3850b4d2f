"""
Harvest Wallet API Tests.

Exercises the HTTP surface: token handling, error mapping and the
read-only balance views.
"""

import pytest
from datetime import timedelta

from backend.app.core.jwt import create_access_token

IDENTITY = {"companyId": "acme", "projectId": "p1", "cropType": "apple"}
WALLET_ID = "acme_p1_apple"


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_top_up_requires_token(client):
    response = await client.post("/v1/harvest-wallets/top-up", json={**IDENTITY, "amount": 100})

    assert response.status_code == 401
    body = response.json()
    assert body["error_code"] == "ERR_UNAUTHENTICATED"
    assert body["details"] == {"kind": "unauthenticated"}


@pytest.mark.parametrize("token", [
    "not-a-jwt",
    create_access_token({"sub": "uid-manager"}, expires_delta=timedelta(minutes=-5)),
    create_access_token({"username": "no-subject"}),
])
async def test_top_up_rejects_unusable_token(client, token):
    response = await client.post(
        "/v1/harvest-wallets/top-up",
        json={**IDENTITY, "amount": 100},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401


async def test_unauthenticated_takes_precedence_over_invalid_body(client):
    response = await client.post("/v1/harvest-wallets/top-up", json={"amount": -1})

    assert response.status_code == 401


async def test_top_up_success(client, auth_headers):
    response = await client.post(
        "/v1/harvest-wallets/top-up", json={**IDENTITY, "amount": 50000}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}


async def test_top_up_invalid_amount(client, auth_headers):
    response = await client.post(
        "/v1/harvest-wallets/top-up", json={**IDENTITY, "amount": 0}, headers=auth_headers
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_INVALID_ARGUMENT"
    assert body["details"] == {"kind": "invalid-argument"}
    assert "amount" in body["message"]


async def test_top_up_without_body(client, auth_headers):
    response = await client.post("/v1/harvest-wallets/top-up", headers=auth_headers)

    assert response.status_code == 400


async def test_payout_insufficient_cash(client, auth_headers):
    await client.post(
        "/v1/harvest-wallets/top-up", json={**IDENTITY, "amount": 1000}, headers=auth_headers
    )

    response = await client.post(
        "/v1/harvest-wallets/payouts",
        json={**IDENTITY, "collectionId": "c1", "payoutAmount": 5000},
        headers=auth_headers,
    )

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_FAILED_PRECONDITION"
    assert body["message"] == "Not enough cash in Harvest Wallet. Please add cash."
    assert body["details"] == {"kind": "failed-precondition"}


async def test_payout_then_read_wallet_and_usage(client, auth_headers):
    await client.post(
        "/v1/harvest-wallets/top-up", json={**IDENTITY, "amount": 70000}, headers=auth_headers
    )
    payout = await client.post(
        "/v1/harvest-wallets/payouts",
        json={**IDENTITY, "collectionId": "c1", "payoutAmount": 30000, "pickerId": "pk-1"},
        headers=auth_headers,
    )
    assert payout.status_code == 200
    assert payout.json() == {"success": True}

    wallet = await client.get(f"/v1/harvest-wallets/{WALLET_ID}", headers=auth_headers)
    assert wallet.status_code == 200
    data = wallet.json()
    assert data["id"] == WALLET_ID
    assert data["cash_received_total"] == 70000
    assert data["cash_paid_out_total"] == 30000
    assert data["current_balance"] == 40000

    usage = await client.get(f"/v1/harvest-wallets/{WALLET_ID}/collections/c1/usage", headers=auth_headers)
    assert usage.status_code == 200
    assert usage.json() == {"wallet_id": WALLET_ID, "collection_id": "c1", "total_deducted": 30000}


async def test_usage_for_uncharged_collection_is_zero(client, auth_headers):
    response = await client.get(
        f"/v1/harvest-wallets/{WALLET_ID}/collections/never/usage", headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["total_deducted"] == 0


async def test_missing_wallet_returns_404(client, auth_headers):
    response = await client.get("/v1/harvest-wallets/nope_nope_nope", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


async def test_read_routes_require_token(client):
    wallet = await client.get(f"/v1/harvest-wallets/{WALLET_ID}")
    usage = await client.get(f"/v1/harvest-wallets/{WALLET_ID}/collections/c1/usage")

    assert wallet.status_code == 401
    assert usage.status_code == 401


async def test_batch_payout_over_http(client, auth_headers, add_pickers):
    await client.post(
        "/v1/harvest-wallets/top-up", json={**IDENTITY, "amount": 100000}, headers=auth_headers
    )
    await add_pickers("c1", [("A", 20000, False), ("B", 15000, True)])

    response = await client.post(
        "/v1/harvest-wallets/payouts/batch",
        json={**IDENTITY, "collectionId": "c1", "pickerIds": ["A", "B"]},
        headers=auth_headers,
    )
    assert response.status_code == 200

    again = await client.post(
        "/v1/harvest-wallets/payouts/batch",
        json={**IDENTITY, "collectionId": "c1", "pickerIds": ["A", "B"]},
        headers=auth_headers,
    )
    assert again.status_code == 409
    assert again.json()["message"] == "All selected pickers are already paid or have zero amount."

    wallet = await client.get(f"/v1/harvest-wallets/{WALLET_ID}", headers=auth_headers)
    assert wallet.json()["current_balance"] == 80000


async def test_ledger_busy_maps_to_503(client, auth_headers, storage, mocker):
    from backend.app.core.exceptions import LedgerBusyError

    mocker.patch.object(storage, "run_transaction", side_effect=LedgerBusyError())

    response = await client.post(
        "/v1/harvest-wallets/top-up", json={**IDENTITY, "amount": 100}, headers=auth_headers
    )

    assert response.status_code == 503
    assert response.json()["error_code"] == "ERR_LEDGER_BUSY"

"""
Discount request endpoint tests.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from app.domain import discount_lifecycle
from app.models.discount_request import DiscountRequest
from app.schemas.discount_request import DiscountRequestCreate
from app.services.discount_request import DiscountRequestService


async def request_discount(client: AsyncClient, headers: dict, **payload) -> dict:
    payload.setdefault("discount_percentage", "20")
    response = await client.post("/api/v1/discount-requests", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_global_request_derives_price(client, auth_headers, other_lens):
    data = await request_discount(
        client, auth_headers, lens_id=other_lens.id, is_global=True, reason="Temporada"
    )

    assert data["status"] == "pending"
    assert Decimal(data["original_price"]) == Decimal("150")
    assert Decimal(data["discounted_price"]) == Decimal("120")
    assert data["is_global"] is True
    assert data["patient_id"] is None
    assert data["is_trusted"] is True
    assert data["requester"]["full_name"] == "Test User"


@pytest.mark.asyncio
async def test_caller_cannot_set_prices(client, auth_headers, other_lens):
    data = await request_discount(
        client,
        auth_headers,
        lens_id=other_lens.id,
        is_global=True,
        original_price="999",
        discounted_price="1",
    )

    assert Decimal(data["discounted_price"]) == Decimal("120")


@pytest.mark.asyncio
@pytest.mark.parametrize("with_patient, is_global", [(True, True), (False, False)])
async def test_scope_must_be_patient_or_global(
    client, auth_headers, lens, patient, with_patient, is_global
):
    response = await client.post(
        "/api/v1/discount-requests",
        json={
            "lens_id": lens.id,
            "patient_id": patient.id if with_patient else None,
            "is_global": is_global,
            "discount_percentage": "10",
        },
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_scope"


@pytest.mark.asyncio
@pytest.mark.parametrize("percentage", ["0", "100.5"])
async def test_percentage_out_of_range(client, auth_headers, lens, percentage):
    response = await client.post(
        "/api/v1/discount-requests",
        json={"lens_id": lens.id, "is_global": True, "discount_percentage": percentage},
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_admin_approves_with_notes(client, auth_headers, admin_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)

    response = await client.post(
        f"/api/v1/discount-requests/{request['id']}/approve",
        json={"approval_notes": "Autorizado por gerencia"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    assert data["approval_notes"] == "Autorizado por gerencia"
    assert data["approved_by"] is not None
    assert data["approved_at"] is not None
    assert data["is_valid"] is True


@pytest.mark.asyncio
async def test_approve_without_body(client, auth_headers, admin_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)

    response = await client.post(
        f"/api/v1/discount-requests/{request['id']}/approve", headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["approval_notes"] == "Aprobado por administrador."


@pytest.mark.asyncio
async def test_approve_without_body_keeps_request_reason(client, auth_headers, admin_headers, lens):
    request = await request_discount(
        client, auth_headers, lens_id=lens.id, is_global=True, reason="Temporada"
    )

    response = await client.post(
        f"/api/v1/discount-requests/{request['id']}/approve", headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["approval_notes"] == "Temporada"


@pytest.mark.asyncio
async def test_tampered_percentage_blocks_approval(
    client, auth_headers, admin_headers, db_session, lens
):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)
    stored = await db_session.get(DiscountRequest, request["id"])
    stored.discount_percentage = Decimal("150")
    await db_session.flush()

    response = await client.post(
        f"/api/v1/discount-requests/{request['id']}/approve", headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json()["error"] == "data_integrity"
    assert response.json()["field"] == "discount_percentage"


@pytest.mark.asyncio
async def test_service_active_discounts(db_session, test_user, lens, patient):
    service = DiscountRequestService(db_session)
    request = await service.create(
        test_user,
        DiscountRequestCreate(lens_id=lens.id, patient_id=patient.id, discount_percentage=Decimal("12")),
    )
    assert await service.get_active_discounts(lens.id, patient.id) == []

    discount_lifecycle.approve(request)
    await db_session.flush()

    assert [d.id for d in await service.get_active_discounts(lens.id, patient.id)] == [request.id]
    best = await service.get_best_discount(lens.id, patient.id)
    assert best.id == request.id


@pytest.mark.asyncio
async def test_receptionist_cannot_approve(client, auth_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)

    response = await client.post(
        f"/api/v1/discount-requests/{request['id']}/approve", headers=auth_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reject_requires_reason(client, auth_headers, admin_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)
    url = f"/api/v1/discount-requests/{request['id']}/reject"

    response = await client.post(url, headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["error"] == "missing_reason"

    response = await client.post(url, json={"rejection_reason": "   "}, headers=admin_headers)
    assert response.status_code == 422

    response = await client.get(f"/api/v1/discount-requests/{request['id']}", headers=auth_headers)
    assert response.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_reject_with_reason(client, auth_headers, admin_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)

    response = await client.post(
        f"/api/v1/discount-requests/{request['id']}/reject",
        json={"rejection_reason": "Margen insuficiente"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["rejection_reason"] == "Margen insuficiente"


@pytest.mark.asyncio
async def test_processed_request_cannot_transition_again(client, auth_headers, admin_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)
    await client.post(f"/api/v1/discount-requests/{request['id']}/approve", headers=admin_headers)

    response = await client.post(
        f"/api/v1/discount-requests/{request['id']}/reject",
        json={"rejection_reason": "Cambio de política"},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "invalid_transition"
    assert response.json()["current"] == "approved"


@pytest.mark.asyncio
async def test_update_recomputes_price(client, auth_headers, other_lens):
    request = await request_discount(client, auth_headers, lens_id=other_lens.id, is_global=True)

    response = await client.patch(
        f"/api/v1/discount-requests/{request['id']}",
        json={"discount_percentage": "25"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert Decimal(response.json()["discounted_price"]) == Decimal("112.50")


@pytest.mark.asyncio
async def test_update_after_approval_is_invalid(client, auth_headers, admin_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)
    await client.post(f"/api/v1/discount-requests/{request['id']}/approve", headers=admin_headers)

    response = await client.patch(
        f"/api/v1/discount-requests/{request['id']}",
        json={"discount_percentage": "30"},
        headers=auth_headers,
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_requester_deletes_pending_request(client, auth_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)

    response = await client.delete(
        f"/api/v1/discount-requests/{request['id']}", headers=auth_headers
    )
    assert response.status_code == 200

    response = await client.get(
        f"/api/v1/discount-requests/{request['id']}", headers=auth_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_requester_cannot_delete_processed_request(client, auth_headers, admin_headers, lens):
    request = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)
    await client.post(f"/api/v1/discount-requests/{request['id']}/approve", headers=admin_headers)

    response = await client.delete(
        f"/api/v1/discount-requests/{request['id']}", headers=auth_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_filters_by_status(client, auth_headers, admin_headers, lens, other_lens):
    approved = await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)
    await request_discount(client, auth_headers, lens_id=other_lens.id, is_global=True)
    await client.post(f"/api/v1/discount-requests/{approved['id']}/approve", headers=admin_headers)

    response = await client.get(
        "/api/v1/discount-requests", params={"status": "approved"}, headers=auth_headers
    )
    data = response.json()

    assert data["total"] == 1
    assert data["items"][0]["id"] == approved["id"]

    response = await client.get(
        "/api/v1/discount-requests", params={"search": "MONO"}, headers=auth_headers
    )
    assert [r["lens"]["identifier"] for r in response.json()["items"]] == ["MONO-1.50"]


@pytest.mark.asyncio
async def test_patient_discount_takes_precedence(client, auth_headers, admin_headers, lens, patient):
    global_discount = await request_discount(
        client, auth_headers, lens_id=lens.id, is_global=True, discount_percentage="10"
    )
    patient_discount = await request_discount(
        client, auth_headers, lens_id=lens.id, patient_id=patient.id, discount_percentage="5"
    )
    for request in (global_discount, patient_discount):
        await client.post(
            f"/api/v1/discount-requests/{request['id']}/approve", headers=admin_headers
        )

    response = await client.get(
        "/api/v1/discount-requests/active",
        params={"lens_id": lens.id, "patient_id": patient.id},
        headers=auth_headers,
    )
    assert [d["id"] for d in response.json()] == [patient_discount["id"]]

    response = await client.get(
        "/api/v1/discount-requests/active", params={"lens_id": lens.id}, headers=auth_headers
    )
    assert [d["id"] for d in response.json()] == [global_discount["id"]]

    response = await client.post(
        "/api/v1/quotes",
        json={"patient_id": patient.id, "items": [{"lens_id": lens.id}]},
        headers=auth_headers,
    )
    item = response.json()["items"][0]
    assert Decimal(item["price"]) == Decimal("95")
    assert Decimal(item["original_price"]) == Decimal("100")
    assert item["discount_request_id"] == patient_discount["id"]


@pytest.mark.asyncio
async def test_pending_discounts_do_not_price_quotes(client, auth_headers, lens):
    await request_discount(client, auth_headers, lens_id=lens.id, is_global=True)

    response = await client.get(
        "/api/v1/discount-requests/active", params={"lens_id": lens.id}, headers=auth_headers
    )
    assert response.json() == []

    response = await client.post(
        "/api/v1/quotes",
        json={"items": [{"lens_id": lens.id}]},
        headers=auth_headers,
    )
    assert Decimal(response.json()["items"][0]["price"]) == Decimal("100")

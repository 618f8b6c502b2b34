"""
API gateway tests against the application over ASGI.
"""

import logging
from datetime import date, timedelta
from types import SimpleNamespace

import httpx
import pytest

from app.core.exceptions import (
    CollaboratorFailure,
    DataIntegrity,
    InvalidTransition,
    MissingReason,
    NotConvertible,
    error_from_payload,
)
from app.models.quote import Quote, QuoteStatus
from app.schemas.quote import QuoteConversionResponse, QuoteResponse
from app.services.gateway import DISCOUNT_REQUESTS, QUOTES, ApiGateway
from app.services.notification import Category, LoggingNotifier, Severity
from app.services.orchestrator import ListFilter, QuoteOrchestrator


BASE_URL = "http://test/api/v1"


def gateway_for(client, headers) -> ApiGateway:
    token = headers["Authorization"].split(" ", 1)[1]
    return ApiGateway(access_token=token, base_url=BASE_URL, client=client)


async def create_quote(client, headers, lens) -> dict:
    response = await client.post(
        "/api/v1/quotes",
        json={"items": [{"lens_id": lens.id, "quantity": 2, "price": "100", "discount": "10"}]},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_list_returns_page_of_schemas(client, auth_headers, lens):
    await create_quote(client, auth_headers, lens)
    await create_quote(client, auth_headers, lens)
    gateway = gateway_for(client, auth_headers)

    page = await gateway.list(QUOTES, {"status": "pending", "page": 1, "per_page": 1})

    assert page.total == 2
    assert page.total_pages == 2
    assert page.current_page == 1
    assert isinstance(page.items[0], QuoteResponse)


@pytest.mark.asyncio
async def test_transition_and_error_mapping(client, auth_headers, lens):
    quote = await create_quote(client, auth_headers, lens)
    gateway = gateway_for(client, auth_headers)

    approved = await gateway.transition(QUOTES, quote["id"], "approve")
    assert approved.status == QuoteStatus.APPROVED

    with pytest.raises(InvalidTransition) as exc_info:
        await gateway.transition(QUOTES, quote["id"], "reject")
    assert exc_info.value.current == "approved"

    result = await gateway.transition(QUOTES, quote["id"], "convert")
    assert isinstance(result, QuoteConversionResponse)
    assert result.quote.sale_id == result.sale.id


@pytest.mark.asyncio
async def test_expired_conversion_maps_to_not_convertible(client, auth_headers, db_session, lens):
    quote = await create_quote(client, auth_headers, lens)
    stored = await db_session.get(Quote, quote["id"])
    stored.expiration_date = date.today() - timedelta(days=1)
    await db_session.flush()
    gateway = gateway_for(client, auth_headers)

    with pytest.raises(NotConvertible) as exc_info:
        await gateway.transition(QUOTES, quote["id"], "convert")

    assert exc_info.value.reason == NotConvertible.EXPIRED


@pytest.mark.asyncio
async def test_discount_rejection_without_reason(client, auth_headers, admin_headers, lens):
    response = await client.post(
        "/api/v1/discount-requests",
        json={"lens_id": lens.id, "is_global": True, "discount_percentage": "15"},
        headers=auth_headers,
    )
    gateway = gateway_for(client, admin_headers)

    with pytest.raises(MissingReason):
        await gateway.transition(DISCOUNT_REQUESTS, response.json()["id"], "reject")


@pytest.mark.asyncio
async def test_pdf_token_and_download(client, auth_headers, lens):
    quote = await create_quote(client, auth_headers, lens)
    gateway = gateway_for(client, auth_headers)

    token = await gateway.issue_token(quote["id"])
    content = await gateway.request_download(quote["id"], quote["quote_number"], token)

    assert content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_plain_http_errors_become_collaborator_failures(client, auth_headers):
    gateway = gateway_for(client, auth_headers)

    with pytest.raises(CollaboratorFailure) as exc_info:
        await gateway.get(QUOTES, 9999)

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Cotización no encontrada"


@pytest.mark.asyncio
async def test_transport_errors_become_collaborator_failures():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        gateway = ApiGateway(base_url=BASE_URL, client=client)

        with pytest.raises(CollaboratorFailure) as exc_info:
            await gateway.list(QUOTES, {})

    assert exc_info.value.collaborator == "api"
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_unknown_resource_is_rejected(client):
    gateway = ApiGateway(base_url=BASE_URL, client=client)

    with pytest.raises(ValueError):
        await gateway.get("prescriptions", 1)


@pytest.mark.asyncio
async def test_orchestrator_over_api(client, auth_headers, lens, caplog):
    quote = await create_quote(client, auth_headers, lens)
    orchestrator = QuoteOrchestrator(
        gateway_for(client, auth_headers),
        LoggingNotifier(),
        list_filter=ListFilter(status=QuoteStatus.PENDING),
    )

    page = await orchestrator.load()
    assert [q.id for q in page.items] == [quote["id"]]

    with caplog.at_level(logging.INFO, logger="app.services.notification"):
        await orchestrator.approve(page.items[0])

    assert orchestrator.page.items == []
    assert "[success] approve" in caplog.text


def test_logging_notifier_levels(caplog):
    notifier = LoggingNotifier()

    with caplog.at_level(logging.INFO, logger="app.services.notification"):
        notifier.notify(Severity.ERROR, Category.CONVERT, "La cotización ha expirado")
        notifier.notify("info", "load", "Cargando")

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.ERROR, logging.INFO]
    assert "[error] convert: La cotización ha expirado" in caplog.text


class RecordingNotifier:
    def __init__(self):
        self.notifications = []

    def notify(self, severity, category, message):
        self.notifications.append((severity, category, message))


@pytest.mark.asyncio
async def test_malformed_list_body_is_recorded_by_orchestrator():
    def handler(request):
        return httpx.Response(200, json={"items": []})

    notifier = RecordingNotifier()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        orchestrator = QuoteOrchestrator(ApiGateway(base_url=BASE_URL, client=client), notifier)

        page = await orchestrator.load()

    assert page is None
    assert isinstance(orchestrator.error, CollaboratorFailure)
    assert orchestrator.error.status_code == 200
    assert notifier.notifications == [
        (Severity.ERROR, Category.LOAD, "Respuesta inesperada de la API")
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"id": "abc"}, ["no", "es", "objeto"]])
async def test_malformed_transition_body_is_notified(body):
    def handler(request):
        return httpx.Response(200, json=body)

    notifier = RecordingNotifier()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        orchestrator = QuoteOrchestrator(ApiGateway(base_url=BASE_URL, client=client), notifier)
        quote = SimpleNamespace(
            id=7,
            quote_number="QUOTE-20261019-0007",
            status=QuoteStatus.PENDING,
            expiration_date=date.today() + timedelta(days=5),
        )

        with pytest.raises(CollaboratorFailure):
            await orchestrator.approve(quote)

    assert notifier.notifications[-1][:2] == (Severity.ERROR, Category.APPROVE)
    assert not orchestrator.is_busy(7)


@pytest.mark.asyncio
async def test_non_json_success_body_becomes_collaborator_failure():
    def handler(request):
        return httpx.Response(200, text="<html>mantenimiento</html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        gateway = ApiGateway(base_url=BASE_URL, client=client)

        with pytest.raises(CollaboratorFailure) as exc_info:
            await gateway.issue_token(1)

    assert exc_info.value.collaborator == "api"


def test_data_integrity_payload_keeps_server_detail():
    error = error_from_payload(
        {
            "error": "data_integrity",
            "detail": "Quote: 'total' almacenado (90.00) no coincide con el valor calculado (95.00)",
            "entity": "Quote",
            "field": "total",
        },
        409,
    )

    assert isinstance(error, DataIntegrity)
    assert str(error) == error.message
    assert "None" not in str(error)
    assert error.field == "total"
    assert error.to_dict()["detail"].startswith("Quote: 'total'")

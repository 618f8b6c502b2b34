"""
Persistence and PDF export collaborators.

``ApiGateway`` talks to the REST API over httpx and rebuilds API error
payloads into the domain errors of ``app.core.exceptions``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Protocol, TypeVar

import httpx
from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import CollaboratorFailure, DomainError, error_from_payload
from app.schemas.discount_request import DiscountRequestResponse
from app.schemas.quote import PdfTokenResponse, QuoteConversionResponse, QuoteResponse


logger = logging.getLogger(__name__)

T = TypeVar("T")

QUOTES = "quotes"
DISCOUNT_REQUESTS = "discount-requests"


@dataclass
class Page(Generic[T]):
    """One page of a server-side list."""

    items: list[T] = field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total: int = 0


class PersistenceGateway(Protocol):
    async def list(self, resource: str, params: dict[str, Any]) -> Page: ...

    async def get(self, resource: str, entity_id: int) -> Any: ...

    async def transition(
        self,
        resource: str,
        entity_id: int,
        action: str,
        payload: dict[str, Any] | None = None,
    ) -> Any: ...


class PdfExporter(Protocol):
    async def issue_token(self, quote_id: int) -> str: ...

    async def request_download(self, quote_id: int, quote_number: str, pdf_token: str) -> bytes: ...


RESPONSE_SCHEMAS: dict[str, type[BaseModel]] = {
    QUOTES: QuoteResponse,
    DISCOUNT_REQUESTS: DiscountRequestResponse,
}

# Transitions whose response is not the resource itself.
TRANSITION_SCHEMAS: dict[tuple[str, str], type[BaseModel]] = {
    (QUOTES, "convert"): QuoteConversionResponse,
}


class ApiGateway:
    """
    httpx client for the front-office REST API.

    Implements both ``PersistenceGateway`` and ``PdfExporter``. Pass a
    ready-made ``httpx.AsyncClient`` to reuse a connection pool or a custom
    transport; otherwise one is created from settings.
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.access_token = access_token
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.API_TIMEOUT_SECONDS)

    async def __aenter__(self) -> "ApiGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def _get_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(
                method, url, headers=self._get_headers(), **kwargs
            )
        except httpx.HTTPError as exc:
            logger.error("API request %s %s failed: %s", method, url, exc)
            raise CollaboratorFailure("api", f"Error de comunicación con la API: {exc}") from exc

        if response.is_error:
            raise self._error_from_response(response)
        return response

    def _error_from_response(self, response: httpx.Response) -> DomainError:
        try:
            payload = response.json()
        except ValueError:
            payload = {"detail": response.text or response.reason_phrase}
        if not isinstance(payload, dict):
            payload = {"detail": str(payload)}

        error = error_from_payload(payload, response.status_code)
        logger.warning(
            "API %s %s returned %s (%s)",
            response.request.method,
            response.request.url,
            response.status_code,
            error.code,
        )
        return error

    def _parse(self, response: httpx.Response, build: Callable[[Any], T]) -> T:
        """Decode a 2xx body, mapping contract violations to ``CollaboratorFailure``."""
        try:
            return build(response.json())
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(
                "Unexpected API response for %s %s: %s",
                response.request.method,
                response.request.url,
                exc,
            )
            raise CollaboratorFailure(
                "api", "Respuesta inesperada de la API", response.status_code
            ) from exc

    def _schema(self, resource: str) -> type[BaseModel]:
        try:
            return RESPONSE_SCHEMAS[resource]
        except KeyError:
            raise ValueError(f"Unknown resource: {resource}") from None

    async def list(self, resource: str, params: dict[str, Any]) -> Page:
        schema = self._schema(resource)
        response = await self._request("GET", f"/{resource}", params=params)
        return self._parse(
            response,
            lambda data: Page(
                items=[schema.model_validate(item) for item in data["items"]],
                current_page=data["page"],
                total_pages=data["pages"],
                total=data["total"],
            ),
        )

    async def get(self, resource: str, entity_id: int) -> Any:
        schema = self._schema(resource)
        response = await self._request("GET", f"/{resource}/{entity_id}")
        return self._parse(response, schema.model_validate)

    async def transition(
        self,
        resource: str,
        entity_id: int,
        action: str,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        """POST ``/{resource}/{id}/{action}``. Called at most once per user action."""
        schema = TRANSITION_SCHEMAS.get((resource, action)) or self._schema(resource)
        kwargs = {"json": payload} if payload is not None else {}
        response = await self._request("POST", f"/{resource}/{entity_id}/{action}", **kwargs)
        return self._parse(response, schema.model_validate)

    async def issue_token(self, quote_id: int) -> str:
        response = await self._request("POST", f"/{QUOTES}/{quote_id}/pdf-token")
        return self._parse(response, PdfTokenResponse.model_validate).pdf_token

    async def request_download(self, quote_id: int, quote_number: str, pdf_token: str) -> bytes:
        response = await self._request(
            "GET",
            f"/guest/{QUOTES}/{quote_id}/pdf",
            params={"token": pdf_token},
        )
        logger.info("Downloaded PDF for quote %s (%s bytes)", quote_number, len(response.content))
        return response.content

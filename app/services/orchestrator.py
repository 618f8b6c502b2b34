"""
Request orchestrators.

Bridge the quote and discount state machines to the paginated list views
served by a persistence gateway. Local state only ever reflects
server-confirmed status: a transition is applied once the gateway
acknowledges it, and the list is refetched after that acknowledgment.
"""

import logging
from dataclasses import dataclass, fields, replace
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable

from app.core.config import settings
from app.core.exceptions import DomainError, ExportUnavailable
from app.domain import discount_lifecycle, quote_lifecycle
from app.services.gateway import (
    DISCOUNT_REQUESTS,
    QUOTES,
    Page,
    PdfExporter,
    PersistenceGateway,
)
from app.services.notification import Category, Notifier, Severity


logger = logging.getLogger(__name__)


@dataclass
class ListFilter:
    """Filter and pagination options for a list view."""

    status: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    patient_id: int | None = None
    search: str | None = None
    page: int = 1
    per_page: int = settings.DEFAULT_PER_PAGE

    def to_params(self) -> dict[str, Any]:
        """Query parameters for the collaborator. Unset or blank options are left out."""
        params: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            elif isinstance(value, date):
                value = value.isoformat()
            params[f.name] = value
        return params


class RequestOrchestrator:
    """
    List state plus transition commands for one resource.

    ``leave()`` marks navigation away from the view: responses that arrive
    afterwards are dropped, although the calls themselves are not cancelled.
    """

    resource: str = ""

    def __init__(
        self,
        gateway: PersistenceGateway,
        notifier: Notifier,
        list_filter: ListFilter | None = None,
    ):
        self.gateway = gateway
        self.notifier = notifier
        self.filter = list_filter or ListFilter()
        self.page: Page | None = None
        self.error: DomainError | None = None
        self.in_flight: set[int] = set()
        self._view = 0
        self._request = 0

    @property
    def current_page(self) -> int:
        return self.page.current_page if self.page else self.filter.page

    def is_busy(self, entity_id: int) -> bool:
        return entity_id in self.in_flight

    async def load(self, list_filter: ListFilter | None = None) -> Page | None:
        """
        Fetch the list for ``list_filter``, or the current filter if omitted.

        The filter becomes current only once its page arrives. On failure the
        error is recorded and notified, and both the page already shown and
        the current filter are kept.
        """
        self._request += 1
        request, view = self._request, self._view
        candidate = list_filter or self.filter

        try:
            page = await self.gateway.list(self.resource, candidate.to_params())
        except DomainError as exc:
            if (request, view) != (self._request, self._view):
                return self.page
            logger.warning("Loading %s failed: %s", self.resource, exc.message)
            self.error = exc
            self.notifier.notify(Severity.ERROR, Category.LOAD, exc.message)
            return self.page

        if (request, view) != (self._request, self._view):
            logger.debug("Discarding stale %s page %s", self.resource, page.current_page)
            return self.page

        self.filter = candidate
        self.page = page
        self.error = None
        return page

    async def apply_filters(self, **options) -> Page | None:
        """Replace filter options, go back to page 1 and refetch."""
        return await self.load(replace(self.filter, page=1, **options))

    async def clear_filters(self) -> Page | None:
        """Reset every filter option, keeping the page size, and refetch."""
        return await self.load(ListFilter(per_page=self.filter.per_page))

    async def go_to_page(self, page: int) -> Page | None:
        return await self.load(replace(self.filter, page=max(page, 1)))

    def leave(self) -> None:
        self._view += 1

    def _check(self, category: Category, check: Callable[[], Any]) -> Any:
        """Run a local precondition; a failure is notified and raised before any call."""
        try:
            return check()
        except DomainError as exc:
            self.notifier.notify(Severity.ERROR, category, exc.message)
            raise

    async def _command(
        self,
        entity_id: int,
        category: Category,
        call: Callable[[], Awaitable[Any]],
        success_message: str,
        refresh: bool = True,
    ) -> Any:
        """
        Run one transition command against the gateway.

        Duplicate submissions for an id already in flight are ignored and
        return None. Domain errors are notified and re-raised.
        """
        if entity_id in self.in_flight:
            logger.info("Ignoring duplicate %s on %s %s", category.value, self.resource, entity_id)
            return None

        self.in_flight.add(entity_id)
        view = self._view
        try:
            result = await call()
        except DomainError as exc:
            logger.warning(
                "%s on %s %s failed: %s", category.value, self.resource, entity_id, exc.message
            )
            self.notifier.notify(Severity.ERROR, category, exc.message)
            raise
        finally:
            self.in_flight.discard(entity_id)

        self.notifier.notify(Severity.SUCCESS, category, success_message)
        if refresh and view == self._view:
            await self.load()
        return result


class QuoteOrchestrator(RequestOrchestrator):
    """Quote list view and commands."""

    resource = QUOTES

    def __init__(
        self,
        gateway: PersistenceGateway,
        notifier: Notifier,
        exporter: PdfExporter | None = None,
        list_filter: ListFilter | None = None,
    ):
        super().__init__(gateway, notifier, list_filter)
        self.exporter = exporter

    async def approve(self, quote: Any) -> Any:
        self._check(
            Category.APPROVE,
            lambda: quote_lifecycle.check_transition(quote, "approve"),
        )
        return await self._command(
            quote.id,
            Category.APPROVE,
            lambda: self.gateway.transition(self.resource, quote.id, "approve"),
            f"Cotización {quote.quote_number} aprobada",
        )

    async def reject(self, quote: Any) -> Any:
        self._check(
            Category.REJECT,
            lambda: quote_lifecycle.check_transition(quote, "reject"),
        )
        return await self._command(
            quote.id,
            Category.REJECT,
            lambda: self.gateway.transition(self.resource, quote.id, "reject"),
            f"Cotización {quote.quote_number} rechazada",
        )

    async def convert_to_sale(self, quote: Any) -> Any:
        """
        Convert a quote into a sale.

        Both conversion preconditions are checked before the gateway is
        called. Returns the server's conversion result (quote and sale).
        """
        self._check(
            Category.CONVERT,
            lambda: quote_lifecycle.ensure_convertible(quote),
        )
        return await self._command(
            quote.id,
            Category.CONVERT,
            lambda: self.gateway.transition(self.resource, quote.id, "convert"),
            f"Cotización {quote.quote_number} convertida en venta",
        )

    def _require_exporter(self) -> PdfExporter:
        if self.exporter is None:
            raise ExportUnavailable("No hay un servicio de exportación de PDF configurado")
        return self.exporter

    async def request_pdf_token(self, quote: Any) -> str | None:
        """Ask the server for a fresh download token."""
        exporter = self._require_exporter()
        return await self._command(
            quote.id,
            Category.PDF,
            lambda: exporter.issue_token(quote.id),
            f"Enlace de descarga generado para {quote.quote_number}",
            refresh=False,
        )

    async def download_pdf(self, quote: Any, pdf_token: str | None = None) -> bytes | None:
        """Download the quote PDF with ``pdf_token`` or the token the quote carries."""
        token = pdf_token or self._check(
            Category.PDF, lambda: quote_lifecycle.ensure_exportable(quote)
        )
        exporter = self._require_exporter()
        return await self._command(
            quote.id,
            Category.PDF,
            lambda: exporter.request_download(quote.id, quote.quote_number, token),
            f"PDF de la cotización {quote.quote_number} descargado",
            refresh=False,
        )


class DiscountRequestOrchestrator(RequestOrchestrator):
    """Discount request list view and approval commands."""

    resource = DISCOUNT_REQUESTS

    async def approve(self, request: Any, notes: str | None = None) -> Any:
        self._check(
            Category.APPROVE,
            lambda: discount_lifecycle.ensure_pending(request, "aprobar"),
        )

        payload = {"approval_notes": notes} if notes else None
        return await self._command(
            request.id,
            Category.APPROVE,
            lambda: self.gateway.transition(self.resource, request.id, "approve", payload),
            "Solicitud de descuento aprobada",
        )

    async def reject(self, request: Any, reason: str | None) -> Any:
        """Reject with a mandatory reason; a blank reason never reaches the gateway."""
        self._check(Category.REJECT, lambda: discount_lifecycle.ensure_reason(reason))
        self._check(
            Category.REJECT,
            lambda: discount_lifecycle.ensure_pending(request, "rechazar"),
        )

        return await self._command(
            request.id,
            Category.REJECT,
            lambda: self.gateway.transition(
                self.resource, request.id, "reject", {"rejection_reason": reason.strip()}
            ),
            "Solicitud de descuento rechazada",
        )

"""
Domain errors raised by the lifecycle engine and its collaborators.

Each error carries a stable ``code`` so that it can travel over the API and
be rebuilt on the client side by the gateway.
"""

from typing import Any


class DomainError(Exception):
    """Base class for every recoverable business-rule violation."""

    code: str = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "error": self.code}


class InvalidTransition(DomainError):
    """An illegal status change was attempted."""

    code = "invalid_transition"

    def __init__(self, entity: str, current: str, action: str):
        super().__init__(
            f"No se puede {action} {entity}: estado actual '{current}'"
        )
        self.entity = entity
        self.current = current
        self.action = action

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(entity=self.entity, current=self.current, action=self.action)
        return data


class NotConvertible(DomainError):
    """
    A quote failed a conversion precondition.

    ``reason`` names the failed precondition: ``status`` or ``expired``.
    """

    code = "not_convertible"

    STATUS = "status"
    EXPIRED = "expired"

    def __init__(self, reason: str, message: str | None = None):
        if message is None:
            message = (
                "La cotización ha expirado y no puede convertirse en venta"
                if reason == self.EXPIRED
                else "Solo las cotizaciones pendientes o aprobadas pueden convertirse en ventas"
            )
        super().__init__(message)
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


class MissingReason(DomainError):
    """A rejection was attempted without a reason."""

    code = "missing_reason"

    def __init__(self, message: str = "El motivo de rechazo es obligatorio"):
        super().__init__(message)


class InvalidScope(DomainError):
    """A discount request is neither or both patient-scoped and global."""

    code = "invalid_scope"

    def __init__(
        self,
        message: str = "El descuento debe aplicar a un paciente o ser global, no ambos",
    ):
        super().__init__(message)


class ExportUnavailable(DomainError):
    """PDF export was requested without a download token."""

    code = "export_unavailable"

    def __init__(
        self,
        message: str = "El PDF no está disponible: solicite un token de descarga",
    ):
        super().__init__(message)


class CollaboratorFailure(DomainError):
    """An external dependency (API, sale creation, PDF export) failed."""

    code = "collaborator_failure"

    def __init__(self, collaborator: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.collaborator = collaborator
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["collaborator"] = self.collaborator
        return data


class DataIntegrity(DomainError):
    """A stored derived field disagrees with its formula."""

    code = "data_integrity"

    def __init__(
        self,
        entity: str,
        field: str,
        stored: Any = None,
        expected: Any = None,
        message: str | None = None,
    ):
        if message is None:
            message = (
                f"{entity}: '{field}' almacenado ({stored}) no coincide con el valor calculado ({expected})"
            )
        super().__init__(message)
        self.entity = entity
        self.field = field
        self.stored = stored
        self.expected = expected

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(entity=self.entity, field=self.field)
        return data


ERRORS_BY_CODE: dict[str, type[DomainError]] = {
    cls.code: cls
    for cls in (
        InvalidTransition,
        NotConvertible,
        MissingReason,
        InvalidScope,
        ExportUnavailable,
        CollaboratorFailure,
        DataIntegrity,
    )
}


def error_from_payload(payload: dict[str, Any], status_code: int) -> DomainError:
    """Rebuild a domain error from an API error payload."""
    code = payload.get("error")
    detail = str(payload.get("detail", "Error desconocido"))

    if code == InvalidTransition.code:
        return InvalidTransition(
            payload.get("entity", "entidad"),
            payload.get("current", "desconocido"),
            payload.get("action", "modificar"),
        )
    if code == NotConvertible.code:
        return NotConvertible(payload.get("reason", NotConvertible.STATUS), detail)
    if code == DataIntegrity.code:
        return DataIntegrity(
            payload.get("entity", "entidad"),
            payload.get("field", "desconocido"),
            message=detail,
        )
    if code == CollaboratorFailure.code:
        return CollaboratorFailure(payload.get("collaborator", "api"), detail, status_code)
    if code in ERRORS_BY_CODE:
        return ERRORS_BY_CODE[code](detail)
    return CollaboratorFailure("api", detail, status_code)

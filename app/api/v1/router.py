"""
API v1 router - aggregates all endpoint routers.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    patients,
    lenses,
    quotes,
    discount_requests,
    guest,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Autenticación"],
)

api_router.include_router(
    patients.router,
    prefix="/patients",
    tags=["Pacientes"],
)

api_router.include_router(
    lenses.router,
    prefix="/lenses",
    tags=["Lentes"],
)

api_router.include_router(
    quotes.router,
    prefix="/quotes",
    tags=["Cotizaciones"],
)

api_router.include_router(
    discount_requests.router,
    prefix="/discount-requests",
    tags=["Solicitudes de descuento"],
)

api_router.include_router(
    guest.router,
    prefix="/guest",
    tags=["Invitados"],
)

"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from refund_desk.api.v1 import cancellations, payment_terms

api_router = APIRouter()

# Payment terms
api_router.include_router(payment_terms.router, prefix="/payment-terms", tags=["Payment Terms"])

# Cancellations
api_router.include_router(cancellations.router, prefix="/cancellations", tags=["Cancellations"])

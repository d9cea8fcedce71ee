"""Payment term endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from refund_desk.api.deps import get_payment_term_registry
from refund_desk.schemas.payment_term import PaymentTermListResponse, PaymentTermResponse
from refund_desk.services.payment_term_service import PaymentTermRegistry

router = APIRouter()


@router.get("", response_model=PaymentTermListResponse)
async def list_payment_terms(
    registry: Annotated[PaymentTermRegistry, Depends(get_payment_term_registry)],
) -> PaymentTermListResponse:
    """List registered payment terms."""
    terms = [PaymentTermResponse.from_domain(term) for term in registry.list_terms()]
    return PaymentTermListResponse(payment_terms=terms, total=len(terms))


@router.get("/{term_id}", response_model=PaymentTermResponse)
async def get_payment_term(
    term_id: str,
    registry: Annotated[PaymentTermRegistry, Depends(get_payment_term_registry)],
) -> PaymentTermResponse:
    """Get a payment term by id."""
    return PaymentTermResponse.from_domain(registry.get(term_id))

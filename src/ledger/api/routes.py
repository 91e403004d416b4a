"""FastAPI routes for courier wallets and their ledger."""

from fastapi import APIRouter, Depends

from ledger.api.schemas import (
    AdjustmentRequest,
    AdjustmentResponse,
    LedgerEntryResponse,
    PostEntryRequest,
    VerifyResponse,
    WalletResponse,
    WithdrawRequest,
)
from shared.web import get_services

router = APIRouter(prefix="/wallets", tags=["wallets"])


@router.get("/{courier_id}", response_model=WalletResponse)
async def get_wallet(courier_id: str, services=Depends(get_services)) -> WalletResponse:
    return WalletResponse.model_validate(services.ledger.totals(courier_id))


@router.get("/{courier_id}/transactions", response_model=list[LedgerEntryResponse])
async def list_transactions(
    courier_id: str, limit: int | None = None, services=Depends(get_services)
) -> list[LedgerEntryResponse]:
    """Ledger entries, newest first."""
    return [LedgerEntryResponse.model_validate(e) for e in services.ledger.history(courier_id, limit)]


@router.post("/{courier_id}/transactions", status_code=201, response_model=LedgerEntryResponse)
async def post_transaction(
    courier_id: str, body: PostEntryRequest, services=Depends(get_services)
) -> LedgerEntryResponse:
    entry = services.ledger.post(
        courier_id,
        body.kind,
        body.amount,
        reference=body.reference,
        description=body.description,
        order_id=body.order_id,
        created_by=body.created_by,
    )
    return LedgerEntryResponse.model_validate(entry)


@router.post("/{courier_id}/withdraw", status_code=201, response_model=LedgerEntryResponse)
async def withdraw(courier_id: str, body: WithdrawRequest, services=Depends(get_services)) -> LedgerEntryResponse:
    entry = services.ledger.withdraw(courier_id, body.amount, reference=body.reference, created_by=body.created_by)
    return LedgerEntryResponse.model_validate(entry)


@router.get("/{courier_id}/adjustments", response_model=list[AdjustmentResponse])
async def list_pending_adjustments(courier_id: str, services=Depends(get_services)) -> list[AdjustmentResponse]:
    """Bonuses and fines not yet applied to the ledger."""
    return [AdjustmentResponse.model_validate(a) for a in services.adjustments.pending(courier_id)]


@router.post("/{courier_id}/bonuses", status_code=201, response_model=AdjustmentResponse)
async def add_bonus(courier_id: str, body: AdjustmentRequest, services=Depends(get_services)) -> AdjustmentResponse:
    adjustment = services.adjustments.add_bonus(courier_id, body.amount, body.reason, created_by=body.created_by)
    return AdjustmentResponse.model_validate(adjustment)


@router.post("/{courier_id}/fines", status_code=201, response_model=AdjustmentResponse)
async def add_fine(courier_id: str, body: AdjustmentRequest, services=Depends(get_services)) -> AdjustmentResponse:
    adjustment = services.adjustments.add_fine(courier_id, body.amount, body.reason, created_by=body.created_by)
    return AdjustmentResponse.model_validate(adjustment)


@router.get("/{courier_id}/verify", response_model=VerifyResponse)
async def verify_wallet(courier_id: str, services=Depends(get_services)) -> VerifyResponse:
    """Re-walk the entry chain; an inconsistent ledger answers 500."""
    return VerifyResponse(courier_id=courier_id, entries_checked=services.ledger.verify(courier_id))

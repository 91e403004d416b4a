"""FastAPI routes for kitchen tickets."""

from fastapi import APIRouter, Depends

from kitchen.api.schemas import StartPreparationRequest, TicketResponse, UpdatePriorityRequest
from shared.web import get_services

router = APIRouter(prefix="/kitchen/tickets", tags=["kitchen"])


@router.get("/active", response_model=list[TicketResponse])
async def list_active_tickets(restaurant_id: str | None = None, services=Depends(get_services)) -> list[TicketResponse]:
    """PENDING and PREPARING tickets, most urgent first."""
    return [TicketResponse.model_validate(t) for t in services.kitchen.list_active(restaurant_id)]


@router.get("/ready", response_model=list[TicketResponse])
async def list_ready_tickets(restaurant_id: str | None = None, services=Depends(get_services)) -> list[TicketResponse]:
    return [TicketResponse.model_validate(t) for t in services.kitchen.list_ready(restaurant_id)]


@router.get("/order/{order_id}", response_model=TicketResponse)
async def get_ticket_for_order(order_id: str, services=Depends(get_services)) -> TicketResponse:
    return TicketResponse.model_validate(services.kitchen.get_for_order(order_id))


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: str, services=Depends(get_services)) -> TicketResponse:
    return TicketResponse.model_validate(services.kitchen.get(ticket_id))


@router.put("/{ticket_id}/start", response_model=TicketResponse)
async def start_preparation(
    ticket_id: str, body: StartPreparationRequest, services=Depends(get_services)
) -> TicketResponse:
    """Start preparing; the order moves to PREPARING in the same transaction."""
    return TicketResponse.model_validate(services.kitchen.start_preparation(ticket_id, body.preparer_name))


@router.put("/{ticket_id}/ready", response_model=TicketResponse)
async def mark_ready(ticket_id: str, services=Depends(get_services)) -> TicketResponse:
    return TicketResponse.model_validate(services.kitchen.mark_ready(ticket_id))


@router.put("/{ticket_id}/picked-up", response_model=TicketResponse)
async def mark_picked_up(ticket_id: str, services=Depends(get_services)) -> TicketResponse:
    return TicketResponse.model_validate(services.kitchen.mark_picked_up(ticket_id))


@router.put("/{ticket_id}/priority", response_model=TicketResponse)
async def update_priority(ticket_id: str, body: UpdatePriorityRequest, services=Depends(get_services)) -> TicketResponse:
    return TicketResponse.model_validate(services.kitchen.update_priority(ticket_id, body.priority))

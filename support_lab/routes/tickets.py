"""
Ticket-related API routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from support_lab.dependencies import get_ticket_repository
from support_lab.errors import InvalidInput
from support_lab.models.schemas import (
    Ticket,
    TicketCreate,
    TicketFilters,
    TicketList,
    TicketPatch,
    TicketStatistics,
)
from support_lab.repositories.ticket_repository import TicketRepository
from support_lab.utils.validators import INT4_MAX, INT4_MIN, validate_ticket_id

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


def _parse_ticket_id(ticket_id: str) -> int:
    if not validate_ticket_id(ticket_id):
        raise InvalidInput("Ticket id must be a positive integer")
    return int(ticket_id)


@router.get("", response_model=TicketList)
async def list_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    severity: Optional[str] = None,
    customer_id: Optional[int] = Query(None, ge=INT4_MIN, le=INT4_MAX),
    assigned_to: Optional[str] = None,
    limit: int = Query(50, ge=0),
    offset: int = Query(0, ge=0),
    repo: TicketRepository = Depends(get_ticket_repository)
):
    """
    List tickets with optional filters

    Example: GET /api/tickets?status=open&severity=high&limit=10
    """
    filters = TicketFilters(
        status=status_filter,
        severity=severity,
        customer_id=customer_id,
        assigned_to=assigned_to,
        limit=limit,
        offset=offset
    )
    return await repo.list_tickets(filters)


# Registered before /{ticket_id} so "stats" is not parsed as an id
@router.get("/stats", response_model=TicketStatistics)
async def get_statistics(repo: TicketRepository = Depends(get_ticket_repository)):
    """Ticket counts and mean resolution time by status and severity"""
    return await repo.get_statistics()


@router.get("/{ticket_id}", response_model=Ticket)
async def get_ticket(ticket_id: str, repo: TicketRepository = Depends(get_ticket_repository)):
    """Get a single ticket"""
    return await repo.get_ticket(_parse_ticket_id(ticket_id))


@router.post("", response_model=Ticket, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreate, repo: TicketRepository = Depends(get_ticket_repository)):
    """
    Create a new ticket

    Status starts as open; severity defaults to low.
    """
    return await repo.create_ticket(payload)


@router.patch("/{ticket_id}", response_model=Ticket)
async def update_ticket(
    ticket_id: str,
    patch: TicketPatch,
    repo: TicketRepository = Depends(get_ticket_repository)
):
    """
    Update status, severity, assignee and/or resolution time

    Only the fields present in the body are changed.
    """
    return await repo.update_ticket(_parse_ticket_id(ticket_id), patch)

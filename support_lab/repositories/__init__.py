"""
Repositories package for database operations

Provides repository classes for:
- support_tickets table (TicketRepository)
"""
from support_lab.repositories.ticket_repository import TicketRepository

__all__ = [
    "TicketRepository",
]

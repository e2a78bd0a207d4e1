"""
Pydantic models for Support Lab
"""

from support_lab.models.schemas import (
    # Enums
    Severity,
    TicketStatus,

    # Database Models
    Ticket,

    # Request Models
    TicketCreate,
    TicketPatch,
    TicketFilters,

    # Response Models
    TicketList,
    StatisticsRow,
    TicketStatistics,
    TicketSummary,
    ErrorResponse,
)

__all__ = [
    # Enums
    "Severity",
    "TicketStatus",

    # Database Models
    "Ticket",

    # Request Models
    "TicketCreate",
    "TicketPatch",
    "TicketFilters",

    # Response Models
    "TicketList",
    "StatisticsRow",
    "TicketStatistics",
    "TicketSummary",
    "ErrorResponse",
]

"""
Pydantic models for Support Lab

Ticket models mirror the `support_tickets` table. Request models are kept
permissive (plain strings / Any) so that domain validation happens in the
repository and is reported as InvalidInput rather than a schema error.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field, ConfigDict

from support_lab.utils.validators import INT4_MAX, INT4_MIN


# ============================================================================
# Enums
# ============================================================================

class Severity(str, Enum):
    """Valid ticket severities"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class TicketStatus(str, Enum):
    """Valid ticket statuses"""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    ESCALATED = "escalated"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


# ============================================================================
# Database Models (matching the support_tickets table)
# ============================================================================

class Ticket(BaseModel):
    """
    Support ticket as stored.

    Attributes:
        id: System-assigned identifier
        title: Short summary (required)
        description: Free-form details
        severity: low | medium | high | critical
        status: open | in_progress | resolved | escalated
        customer_id: Customer reference
        assigned_to: Assignee name
        resolution_time: Minutes taken to resolve
        created_at: Creation timestamp
        updated_at: Last mutation timestamp
    """
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., gt=0, description="Ticket identifier")
    title: str = Field(..., description="Ticket title")
    description: Optional[str] = Field(None, description="Ticket description")
    severity: Severity = Field(Severity.LOW, description="Ticket severity")
    status: TicketStatus = Field(TicketStatus.OPEN, description="Ticket status")
    customer_id: Optional[int] = Field(None, description="Customer reference")
    assigned_to: Optional[str] = Field(None, description="Assignee")
    resolution_time: Optional[int] = Field(None, ge=0, description="Resolution time in minutes")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# ============================================================================
# Request Models
# ============================================================================

class TicketCreate(BaseModel):
    """Ticket creation payload"""
    title: Optional[str] = Field(None, description="Ticket title (required)")
    description: Optional[str] = Field(None, description="Ticket description")
    severity: Optional[str] = Field(None, description="low | medium | high | critical (default low)")
    customer_id: Optional[int] = Field(None, ge=INT4_MIN, le=INT4_MAX, description="Customer reference")
    assigned_to: Optional[str] = Field(None, description="Assignee")


class TicketPatch(BaseModel):
    """
    Sparse ticket update.

    Only fields present in the request body are applied; an explicit null
    counts as present.
    """
    status: Optional[str] = Field(None, description="New status")
    severity: Optional[str] = Field(None, description="New severity")
    assigned_to: Optional[str] = Field(None, description="New assignee")
    resolution_time: Optional[Any] = Field(None, description="Resolution time in minutes")

    def supplied_fields(self) -> Dict[str, Any]:
        """Fields the caller actually sent"""
        return self.model_dump(exclude_unset=True)


class TicketFilters(BaseModel):
    """List filters and pagination"""
    status: Optional[str] = None
    severity: Optional[str] = None
    customer_id: Optional[int] = Field(None, ge=INT4_MIN, le=INT4_MAX)
    assigned_to: Optional[str] = None
    limit: int = Field(50, ge=0, description="Maximum rows to return")
    offset: int = Field(0, ge=0, description="Rows to skip")

    def supplied_filters(self) -> Dict[str, Any]:
        """Equality filters with a value; absent filters impose no constraint"""
        candidates = {
            "status": self.status,
            "severity": self.severity,
            "customer_id": self.customer_id,
            "assigned_to": self.assigned_to,
        }
        return {
            key: value for key, value in candidates.items()
            if value is not None and value != ""
        }


# ============================================================================
# Response Models
# ============================================================================

class TicketList(BaseModel):
    """List response"""
    count: int = Field(..., ge=0, description="Number of tickets returned")
    tickets: List[Ticket] = Field(default_factory=list)


class StatisticsRow(BaseModel):
    """Aggregate for one (status, severity) group"""
    status: Optional[str] = None
    severity: Optional[str] = None
    count: int = Field(..., ge=0)
    avg_resolution_time: Optional[float] = None


class TicketStatistics(BaseModel):
    statistics: List[StatisticsRow] = Field(default_factory=list)


class TicketSummary(BaseModel):
    """Whole-table ticket counters used by /metrics"""
    total: int = 0
    open: int = 0
    resolved: int = 0
    avg_resolution_time_minutes: Optional[float] = None
    last_created: Optional[datetime] = None


class ErrorResponse(BaseModel):
    """Standard error response"""
    model_config = ConfigDict(from_attributes=True)

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    detail: Optional[Any] = Field(None, description="Internal detail (development only)")

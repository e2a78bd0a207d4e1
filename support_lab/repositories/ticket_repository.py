"""
Ticket Repository for operations on the support_tickets table

Features:
- Filtered, paginated listing (AND-combined equality filters)
- Create with field validation before any statement is issued
- Sparse partial updates built field by field from a whitelist
- Grouped statistics and whole-table metrics summary

Caller values are always bound as $n parameters; only whitelisted column
names ever appear in statement text.
"""
from typing import Any, Dict, List, Optional, Tuple

from support_lab.errors import InvalidInput, NotFound
from support_lab.models.schemas import (
    Severity,
    StatisticsRow,
    Ticket,
    TicketCreate,
    TicketFilters,
    TicketList,
    TicketPatch,
    TicketStatistics,
    TicketStatus,
    TicketSummary,
)
from support_lab.services.database import Database
from support_lab.utils.logger import get_logger
from support_lab.utils.validators import INT4_MAX, parse_non_negative_int, sanitize_input

logger = get_logger(__name__)

TABLE_NAME = "support_tickets"

TITLE_MAX_LENGTH = 255
ASSIGNEE_MAX_LENGTH = 100

# Filter key -> column
FILTER_COLUMNS = {
    "status": "status",
    "severity": "severity",
    "customer_id": "customer_id",
    "assigned_to": "assigned_to",
}

# Patch key -> column
PATCH_COLUMNS = {
    "status": "status",
    "severity": "severity",
    "assigned_to": "assigned_to",
    "resolution_time": "resolution_time",
}


# ============================================================================
# Validation
# ============================================================================

def _check_enum(field: str, value: Any, allowed: List[str]) -> str:
    if value not in allowed:
        raise InvalidInput(f"Invalid {field}. Must be one of: {', '.join(allowed)}")
    return value


def _check_assignee(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value) > ASSIGNEE_MAX_LENGTH:
        raise InvalidInput(f"assigned_to must be {ASSIGNEE_MAX_LENGTH} characters or less")
    return value


def _check_ticket_id(ticket_id: int) -> None:
    if isinstance(ticket_id, bool) or not isinstance(ticket_id, int) or ticket_id <= 0:
        raise InvalidInput("Ticket id must be a positive integer")
    if ticket_id > INT4_MAX:
        # Beyond the id column range, so no row can match
        raise NotFound("Ticket not found")


def validate_new_ticket(data: TicketCreate) -> Dict[str, Any]:
    """
    Validate a creation payload and resolve defaults

    Args:
        data: Raw creation payload

    Returns:
        Column values for the insert (status is always open)

    Raises:
        InvalidInput: Blank title, unknown severity or oversized fields
    """
    title = sanitize_input(data.title or "")
    if not title:
        raise InvalidInput("Title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise InvalidInput(f"Title must be {TITLE_MAX_LENGTH} characters or less")

    severity = Severity.LOW.value
    if data.severity:
        severity = _check_enum("severity", data.severity, Severity.values())

    description = sanitize_input(data.description) if data.description else None

    return {
        "title": title,
        "description": description or None,
        "severity": severity,
        "status": TicketStatus.OPEN.value,
        "customer_id": data.customer_id,
        "assigned_to": _check_assignee(data.assigned_to) or None,
    }


def compose_patch(patch: TicketPatch) -> Dict[str, Any]:
    """
    Turn a sparse patch into validated column assignments

    Args:
        patch: Partial update payload

    Returns:
        Mapping of column -> new value, in a stable order

    Raises:
        InvalidInput: No recognized fields, or a field fails validation
    """
    supplied = patch.supplied_fields()
    changes: Dict[str, Any] = {}

    if "status" in supplied:
        changes["status"] = _check_enum("status", supplied["status"], TicketStatus.values())

    if "severity" in supplied:
        changes["severity"] = _check_enum("severity", supplied["severity"], Severity.values())

    if "assigned_to" in supplied:
        changes["assigned_to"] = _check_assignee(supplied["assigned_to"])

    if "resolution_time" in supplied:
        raw = supplied["resolution_time"]
        if raw is None:
            changes["resolution_time"] = None
        else:
            minutes = parse_non_negative_int(raw)
            if minutes is None:
                raise InvalidInput("resolution_time must be a non-negative integer")
            changes["resolution_time"] = minutes

    if not changes:
        raise InvalidInput("No valid fields to update")

    return changes


def build_list_query(filters: TicketFilters) -> Tuple[str, List[Any]]:
    """
    Build the filtered list statement

    Returns:
        (statement text, bound params)
    """
    clauses: List[str] = []
    params: List[Any] = []

    for key, value in filters.supplied_filters().items():
        params.append(value)
        clauses.append(f"{FILTER_COLUMNS[key]} = ${len(params)}")

    statement = f"SELECT * FROM {TABLE_NAME}"
    if clauses:
        statement += " WHERE " + " AND ".join(clauses)

    params.append(filters.limit)
    limit_ref = len(params)
    params.append(filters.offset)
    offset_ref = len(params)
    statement += f" ORDER BY created_at DESC, id DESC LIMIT ${limit_ref} OFFSET ${offset_ref}"

    return statement, params


def build_update_query(ticket_id: int, changes: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """
    Build a single-statement partial update

    updated_at is never earlier than created_at.

    Returns:
        (statement text, bound params)
    """
    assignments: List[str] = []
    params: List[Any] = []

    for key, value in changes.items():
        params.append(value)
        assignments.append(f"{PATCH_COLUMNS[key]} = ${len(params)}")

    assignments.append("updated_at = GREATEST(NOW(), created_at)")
    params.append(ticket_id)

    statement = (
        f"UPDATE {TABLE_NAME} SET {', '.join(assignments)} "
        f"WHERE id = ${len(params)} RETURNING *"
    )
    return statement, params


# ============================================================================
# Repository
# ============================================================================

class TicketRepository:
    """Repository for support_tickets table operations"""

    def __init__(self, database: Database):
        """
        Initialize repository with the store gateway

        Args:
            database: Store gateway used for every statement
        """
        self.db = database
        self.table_name = TABLE_NAME
        logger.info(f"TicketRepository initialized for table: {self.table_name}")

    async def list_tickets(self, filters: TicketFilters) -> TicketList:
        """
        List tickets matching all supplied filters, newest first

        Args:
            filters: Equality filters plus limit/offset

        Returns:
            TicketList (empty when nothing matches)
        """
        statement, params = build_list_query(filters)
        rows = await self.db.execute("tickets.list", statement, *params)
        tickets = [Ticket(**row) for row in rows]
        return TicketList(count=len(tickets), tickets=tickets)

    async def get_ticket(self, ticket_id: int) -> Ticket:
        """
        Get ticket by ID

        Raises:
            InvalidInput: id is not a positive integer
            NotFound: No such ticket
        """
        _check_ticket_id(ticket_id)

        rows = await self.db.execute(
            "tickets.get",
            f"SELECT * FROM {self.table_name} WHERE id = $1",
            ticket_id
        )
        if not rows:
            raise NotFound("Ticket not found")

        return Ticket(**rows[0])

    async def create_ticket(self, data: TicketCreate) -> Ticket:
        """
        Create a new ticket

        Args:
            data: Creation payload (validated here)

        Returns:
            The stored ticket, including id and timestamps
        """
        values = validate_new_ticket(data)

        rows = await self.db.execute(
            "tickets.create",
            f"""
            INSERT INTO {self.table_name}
                (title, description, severity, status, customer_id, assigned_to)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING *
            """,
            values["title"],
            values["description"],
            values["severity"],
            values["status"],
            values["customer_id"],
            values["assigned_to"]
        )

        ticket = Ticket(**rows[0])
        logger.info(f"Created new ticket #{ticket.id}: {ticket.title}")
        return ticket

    async def update_ticket(self, ticket_id: int, patch: TicketPatch) -> Ticket:
        """
        Apply a partial update

        Validation happens before the statement is built, so a rejected
        patch never touches the store.

        Raises:
            InvalidInput: Empty patch or invalid field value
            NotFound: No such ticket
        """
        _check_ticket_id(ticket_id)

        changes = compose_patch(patch)
        statement, params = build_update_query(ticket_id, changes)

        rows = await self.db.execute("tickets.update", statement, *params)
        if not rows:
            raise NotFound("Ticket not found")

        logger.info(f"Updated ticket #{ticket_id} ({', '.join(changes)})")
        return Ticket(**rows[0])

    async def get_statistics(self) -> TicketStatistics:
        """Counts and mean resolution time grouped by status and severity"""
        rows = await self.db.execute(
            "tickets.stats",
            f"""
            SELECT
                status,
                severity,
                COUNT(*) AS count,
                AVG(resolution_time)::float AS avg_resolution_time
            FROM {self.table_name}
            GROUP BY status, severity
            ORDER BY status, severity
            """
        )
        return TicketStatistics(statistics=[StatisticsRow(**row) for row in rows])

    async def get_summary(self) -> TicketSummary:
        """Whole-table counters for the metrics endpoint"""
        rows = await self.db.execute(
            "tickets.summary",
            f"""
            SELECT
                COUNT(*) AS total_tickets,
                COUNT(CASE WHEN status = 'open' THEN 1 END) AS open_tickets,
                COUNT(CASE WHEN status = 'resolved' THEN 1 END) AS resolved_tickets,
                AVG(resolution_time)::float AS avg_resolution_time_minutes,
                MAX(created_at) AS last_ticket_created
            FROM {self.table_name}
            """
        )
        stats = rows[0] if rows else {}
        avg = stats.get("avg_resolution_time_minutes")

        return TicketSummary(
            total=int(stats.get("total_tickets") or 0),
            open=int(stats.get("open_tickets") or 0),
            resolved=int(stats.get("resolved_tickets") or 0),
            avg_resolution_time_minutes=round(float(avg), 2) if avg is not None else None,
            last_created=stats.get("last_ticket_created")
        )

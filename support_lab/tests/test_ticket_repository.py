"""
Unit tests for TicketRepository

Tests:
- Creation validation (title, severity enum boundary, defaults)
- Patch composition (status/severity enum boundary, empty patch)
- List statement building (AND filters, ordering, pagination)
- Statement execution against a mocked store gateway
"""
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from pydantic import ValidationError

from support_lab.errors import InvalidInput, NotFound, StoreFailure
from support_lab.models.schemas import (
    Severity,
    TicketCreate,
    TicketFilters,
    TicketPatch,
    TicketStatus,
)
from support_lab.repositories.ticket_repository import (
    TicketRepository,
    build_list_query,
    build_update_query,
    compose_patch,
    validate_new_ticket,
)

INVALID_ENUM_VALUES = ["", "LOW", "Open", "urgent", "closed", "in progress", " high", "null"]


def _row(**overrides):
    now = datetime(2024, 1, 1, 12, 0, 0)
    row = {
        "id": 1,
        "title": "Login broken",
        "description": None,
        "severity": "low",
        "status": "open",
        "customer_id": None,
        "assigned_to": None,
        "resolution_time": None,
        "created_at": now,
        "updated_at": now,
    }
    row.update(overrides)
    return row


@pytest.fixture
def mock_db():
    """Fixture for mock store gateway"""
    db = MagicMock()
    db.execute = AsyncMock(return_value=[_row()])
    return db


@pytest.fixture
def repo(mock_db):
    return TicketRepository(mock_db)


class TestValidateNewTicket:
    """Test creation payload validation"""

    def test_defaults(self):
        values = validate_new_ticket(TicketCreate(title="Bug"))

        assert values["title"] == "Bug"
        assert values["severity"] == "low"
        assert values["status"] == "open"

    @pytest.mark.parametrize("title", [None, "", " ", "   \t\n"])
    def test_blank_title_rejected(self, title):
        with pytest.raises(InvalidInput, match="Title is required"):
            validate_new_ticket(TicketCreate(title=title))

    def test_title_too_long(self):
        with pytest.raises(InvalidInput):
            validate_new_ticket(TicketCreate(title="x" * 256))

    def test_title_at_limit(self):
        assert len(validate_new_ticket(TicketCreate(title="x" * 255))["title"]) == 255

    @pytest.mark.parametrize("severity", Severity.values())
    def test_every_severity_accepted(self, severity):
        assert validate_new_ticket(TicketCreate(title="Bug", severity=severity))["severity"] == severity

    @pytest.mark.parametrize("severity", [v for v in INVALID_ENUM_VALUES if v])
    def test_unknown_severity_rejected(self, severity):
        with pytest.raises(InvalidInput, match="Invalid severity"):
            validate_new_ticket(TicketCreate(title="Bug", severity=severity))

    def test_status_is_always_open(self):
        values = validate_new_ticket(TicketCreate(title="Bug", severity="critical"))
        assert values["status"] == TicketStatus.OPEN.value


class TestComposePatch:
    """Test partial update composition"""

    def test_empty_patch_rejected(self):
        with pytest.raises(InvalidInput, match="No valid fields to update"):
            compose_patch(TicketPatch())

    def test_unknown_fields_only_rejected(self):
        with pytest.raises(InvalidInput, match="No valid fields to update"):
            compose_patch(TicketPatch.model_validate({"title": "renamed"}))

    @pytest.mark.parametrize("status", TicketStatus.values())
    def test_every_status_accepted(self, status):
        assert compose_patch(TicketPatch(status=status)) == {"status": status}

    @pytest.mark.parametrize("status", INVALID_ENUM_VALUES)
    def test_unknown_status_rejected(self, status):
        with pytest.raises(InvalidInput, match="Invalid status"):
            compose_patch(TicketPatch(status=status))

    @pytest.mark.parametrize("severity", Severity.values())
    def test_every_severity_accepted(self, severity):
        assert compose_patch(TicketPatch(severity=severity)) == {"severity": severity}

    @pytest.mark.parametrize("severity", INVALID_ENUM_VALUES)
    def test_unknown_severity_rejected(self, severity):
        with pytest.raises(InvalidInput, match="Invalid severity"):
            compose_patch(TicketPatch(severity=severity))

    def test_only_supplied_fields_included(self):
        changes = compose_patch(TicketPatch(status="resolved", resolution_time=45))
        assert changes == {"status": "resolved", "resolution_time": 45}

    def test_explicit_null_assignee_is_applied(self):
        assert compose_patch(TicketPatch.model_validate({"assigned_to": None})) == {"assigned_to": None}

    @pytest.mark.parametrize("value", [-1, 1.5, "later", True])
    def test_invalid_resolution_time_rejected(self, value):
        with pytest.raises(InvalidInput):
            compose_patch(TicketPatch(resolution_time=value))

    def test_long_assignee_rejected(self):
        with pytest.raises(InvalidInput):
            compose_patch(TicketPatch(assigned_to="a" * 101))


class TestQueryBuilding:
    """Test statement text and bound params"""

    def test_list_without_filters(self):
        statement, params = build_list_query(TicketFilters())

        assert "WHERE" not in statement
        assert "ORDER BY created_at DESC, id DESC" in statement
        assert statement.endswith("LIMIT $1 OFFSET $2")
        assert params == [50, 0]

    def test_list_filters_are_and_combined(self):
        statement, params = build_list_query(
            TicketFilters(status="open", severity="high", limit=10, offset=5)
        )

        assert "WHERE status = $1 AND severity = $2" in statement
        assert "LIMIT $3 OFFSET $4" in statement
        assert params == ["open", "high", 10, 5]

    def test_list_ignores_empty_filters(self):
        statement, params = build_list_query(TicketFilters(status="", assigned_to=None, customer_id=7))

        assert "WHERE customer_id = $1" in statement
        assert params == [7, 50, 0]

    def test_filter_values_never_in_statement(self):
        statement, params = build_list_query(TicketFilters(assigned_to="x'; DROP TABLE support_tickets; --"))

        assert "DROP" not in statement
        assert params[0] == "x'; DROP TABLE support_tickets; --"

    def test_update_statement(self):
        statement, params = build_update_query(3, {"status": "resolved", "resolution_time": 45})

        assert statement.startswith("UPDATE support_tickets SET status = $1, resolution_time = $2")
        assert "updated_at = GREATEST(NOW(), created_at)" in statement
        assert "WHERE id = $3 RETURNING *" in statement
        assert params == ["resolved", 45, 3]


class TestRepositoryOperations:
    """Test repository methods against the mocked gateway"""

    @pytest.mark.asyncio
    async def test_list_tickets(self, repo, mock_db):
        mock_db.execute.return_value = [_row(id=2), _row(id=1)]

        result = await repo.list_tickets(TicketFilters(status="open"))

        assert result.count == 2
        assert [t.id for t in result.tickets] == [2, 1]
        name = mock_db.execute.call_args[0][0]
        assert name == "tickets.list"

    @pytest.mark.asyncio
    async def test_list_empty(self, repo, mock_db):
        mock_db.execute.return_value = []

        result = await repo.list_tickets(TicketFilters())

        assert result.count == 0
        assert result.tickets == []

    @pytest.mark.asyncio
    async def test_get_ticket_not_found(self, repo, mock_db):
        mock_db.execute.return_value = []

        with pytest.raises(NotFound):
            await repo.get_ticket(999999)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ticket_id", [0, -1])
    async def test_get_ticket_invalid_id(self, repo, mock_db, ticket_id):
        with pytest.raises(InvalidInput):
            await repo.get_ticket(ticket_id)
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_ticket_binds_values(self, repo, mock_db):
        mock_db.execute.return_value = [_row(title="Bug", severity="high")]

        ticket = await repo.create_ticket(TicketCreate(title="  Bug ", severity="high", customer_id=12))

        assert ticket.severity == Severity.HIGH
        args = mock_db.execute.call_args[0]
        assert args[0] == "tickets.create"
        assert args[2:] == ("Bug", None, "high", "open", 12, None)

    @pytest.mark.asyncio
    async def test_create_invalid_issues_no_statement(self, repo, mock_db):
        with pytest.raises(InvalidInput):
            await repo.create_ticket(TicketCreate(title=" "))
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_update_issues_no_statement(self, repo, mock_db):
        with pytest.raises(InvalidInput):
            await repo.update_ticket(1, TicketPatch())
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_missing_ticket(self, repo, mock_db):
        mock_db.execute.return_value = []

        with pytest.raises(NotFound):
            await repo.update_ticket(999999, TicketPatch(status="resolved"))

    @pytest.mark.asyncio
    async def test_update_ticket(self, repo, mock_db):
        mock_db.execute.return_value = [_row(status="resolved", resolution_time=45)]

        ticket = await repo.update_ticket(1, TicketPatch(status="resolved", resolution_time=45))

        assert ticket.status == TicketStatus.RESOLVED
        assert ticket.resolution_time == 45
        args = mock_db.execute.call_args[0]
        assert args[0] == "tickets.update"
        assert args[2:] == ("resolved", 45, 1)

    @pytest.mark.asyncio
    async def test_statistics_counts_sum_to_total(self, repo, mock_db):
        mock_db.execute.return_value = [
            {"status": "open", "severity": "high", "count": 3, "avg_resolution_time": None},
            {"status": "open", "severity": "low", "count": 2, "avg_resolution_time": None},
            {"status": "resolved", "severity": "low", "count": 4, "avg_resolution_time": 37.5},
        ]

        stats = await repo.get_statistics()

        assert sum(row.count for row in stats.statistics) == 9
        assert stats.statistics[2].avg_resolution_time == 37.5
        statement = mock_db.execute.call_args[0][1]
        assert "GROUP BY status, severity" in statement

    @pytest.mark.asyncio
    async def test_summary(self, repo, mock_db):
        mock_db.execute.return_value = [{
            "total_tickets": 19,
            "open_tickets": 8,
            "resolved_tickets": 6,
            "avg_resolution_time_minutes": 101.33333,
            "last_ticket_created": datetime(2024, 1, 2),
        }]

        summary = await repo.get_summary()

        assert summary.total == 19
        assert summary.open == 8
        assert summary.resolved == 6
        assert summary.avg_resolution_time_minutes == 101.33

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, repo, mock_db):
        mock_db.execute.side_effect = StoreFailure("Statement tickets.list failed", statement="tickets.list")

        with pytest.raises(StoreFailure):
            await repo.list_tickets(TicketFilters())

    @pytest.mark.asyncio
    async def test_id_beyond_column_range_is_not_found(self, repo, mock_db):
        with pytest.raises(NotFound):
            await repo.get_ticket(99999999999)
        with pytest.raises(NotFound):
            await repo.update_ticket(2_147_483_648, TicketPatch(status="resolved"))
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_largest_id_is_queried(self, repo, mock_db):
        mock_db.execute.return_value = []

        with pytest.raises(NotFound):
            await repo.get_ticket(2_147_483_647)
        assert mock_db.execute.call_args[0][2] == 2_147_483_647


class TestIntegerRanges:
    """Values outside the INTEGER column range never reach the store"""

    @pytest.mark.parametrize("value", ["²", 2_147_483_648, "99999999999"])
    def test_resolution_time_out_of_range(self, value):
        with pytest.raises(InvalidInput):
            compose_patch(TicketPatch(resolution_time=value))

    def test_customer_id_bounds(self):
        with pytest.raises(ValidationError):
            TicketCreate(title="Bug", customer_id=99999999999)
        with pytest.raises(ValidationError):
            TicketFilters(customer_id=-99999999999)
        assert TicketCreate(title="Bug", customer_id=2_147_483_647).customer_id == 2_147_483_647

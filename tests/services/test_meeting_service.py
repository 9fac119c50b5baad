# tests/services/test_meeting_service.py
import pytest
from unittest.mock import MagicMock, ANY
from datetime import datetime

from cellchurch.services.meeting_service import MeetingService
from cellchurch.services.exceptions import *
from cellchurch.repositories.interfaces import ICellRepository, IMeetingRepository
from cellchurch.database import models
from cellchurch.policy import AuthorizationContext

@pytest.fixture
def mock_meeting_repo() -> MagicMock:
    return MagicMock(spec=IMeetingRepository)

@pytest.fixture
def mock_cell_repo() -> MagicMock:
    repo = MagicMock(spec=ICellRepository)
    repo.find_by_id.return_value = models.Cell(id=42, network_id=7, name="Hope")
    return repo

@pytest.fixture
def meeting_service(mock_meeting_repo, mock_cell_repo) -> MeetingService:
    return MeetingService(mock_meeting_repo, mock_cell_repo)

class TestLogMeeting:
    def test_cell_leader_logs_meeting(self, meeting_service, mock_meeting_repo):
        """셀 리더가 자기 셀의 모임을 기록하면 리더로 기록되는지 테스트합니다."""
        # === Arrange ===
        ctx = AuthorizationContext.from_records(3, [("CELL_LEADER", None, 42)])
        mock_meeting_repo.create.side_effect = lambda meeting: meeting

        # === Act ===
        result = meeting_service.log_meeting(ctx, 42, "2026-10-18T19:00:00", notes="Prayer", attendance_count=12)

        # === Assert ===
        created = mock_meeting_repo.create.call_args.args[0]
        assert created.leader_user_id == 3
        assert created.occurred_at == datetime(2026, 10, 18, 19, 0)
        assert result["attendance_count"] == 12
        assert result["occurred_at"] == "2026-10-18T19:00:00"

    def test_network_leader_of_parent_network_logs_meeting(self, meeting_service, mock_meeting_repo):
        ctx = AuthorizationContext.from_records(2, [("NETWORK_LEADER", 7, None)])
        mock_meeting_repo.create.side_effect = lambda meeting: meeting

        meeting_service.log_meeting(ctx, 42, datetime(2026, 10, 18, 19, 0))

        mock_meeting_repo.create.assert_called_once_with(ANY)

    def test_leader_of_other_cell_is_rejected(self, meeting_service, mock_meeting_repo):
        ctx = AuthorizationContext.from_records(3, [("CELL_LEADER", None, 43)])

        with pytest.raises(AuthorizationError, match="Not authorized to log meetings"):
            meeting_service.log_meeting(ctx, 42, datetime(2026, 10, 18))
        mock_meeting_repo.create.assert_not_called()

    def test_negative_attendance(self, meeting_service):
        ctx = AuthorizationContext.from_records(3, [("CELL_LEADER", None, 42)])

        with pytest.raises(ValueError):
            meeting_service.log_meeting(ctx, 42, datetime(2026, 10, 18), attendance_count=-1)

    def test_missing_cell(self, meeting_service, mock_cell_repo):
        mock_cell_repo.find_by_id.return_value = None
        ctx = AuthorizationContext.from_records(1, [("ADMIN", None, None)])

        with pytest.raises(CellNotFoundError):
            meeting_service.log_meeting(ctx, 99, datetime(2026, 10, 18))

class TestListMeetings:
    def test_outsider_cannot_list(self, meeting_service, mock_meeting_repo):
        with pytest.raises(AuthorizationError):
            meeting_service.list_meetings(AuthorizationContext.anonymous(), 42)
        mock_meeting_repo.list_by_cell.assert_not_called()

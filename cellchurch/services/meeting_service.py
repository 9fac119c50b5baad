import logging
from datetime import datetime
from typing import Dict, Any, List

from cellchurch.database import models
from cellchurch.policy import AuthorizationContext, assert_permission, can_access_cell, can_log_meeting
from cellchurch.repositories.interfaces import ICellRepository, IMeetingRepository
from cellchurch.services.exceptions import CellNotFoundError

logger = logging.getLogger(__name__)


class MeetingService:
    """셀 모임 기록을 관리합니다."""

    def __init__(self, meeting_repo: IMeetingRepository, cell_repo: ICellRepository):
        self.meeting_repo = meeting_repo
        self.cell_repo = cell_repo

    def log_meeting(self, ctx: AuthorizationContext, cell_id: int, occurred_at, notes: str = None,
                    attendance_count: int = 0) -> Dict[str, Any]:
        """
        셀 모임을 기록합니다. 요청자가 모임의 리더로 기록됩니다.

        Args:
            occurred_at: 모임 일시 (datetime 또는 ISO 8601 문자열).

        Raises:
            CellNotFoundError: 셀이 없을 때.
            AuthorizationError: 요청자가 해당 셀의 모임을 기록할 수 없을 때.
            ValueError: 일시 형식이 잘못되었거나 참석 인원이 음수일 때.
        """
        cell = self._find_cell(cell_id)
        assert_permission(can_log_meeting(ctx, cell.id, cell.network_id),
                          "Not authorized to log meetings for this cell.")
        if isinstance(occurred_at, str):
            occurred_at = datetime.fromisoformat(occurred_at)
        if attendance_count < 0:
            raise ValueError("Attendance count cannot be negative.")

        meeting = self.meeting_repo.create(models.Meeting(
            cell_id=cell.id,
            leader_user_id=ctx.user_id,
            occurred_at=occurred_at,
            notes=notes,
            attendance_count=attendance_count,
        ))
        logger.info("Meeting %s logged for cell %s by %s", meeting.id, cell.id, ctx.user_id)
        return _meeting_to_dict(meeting)

    def list_meetings(self, ctx: AuthorizationContext, cell_id: int) -> List[Dict[str, Any]]:
        cell = self._find_cell(cell_id)
        assert_permission(can_access_cell(ctx, cell.id, cell.network_id), "Not allowed to view this cell.")
        return [_meeting_to_dict(m) for m in self.meeting_repo.list_by_cell(cell.id)]

    def _find_cell(self, cell_id: int) -> models.Cell:
        cell = self.cell_repo.find_by_id(cell_id)
        if not cell:
            raise CellNotFoundError(f"Cell with id '{cell_id}' not found.")
        return cell


def _meeting_to_dict(meeting: models.Meeting) -> Dict[str, Any]:
    return {
        "id": meeting.id,
        "cell_id": meeting.cell_id,
        "leader_user_id": meeting.leader_user_id,
        "occurred_at": meeting.occurred_at.isoformat(),
        "notes": meeting.notes,
        "attendance_count": meeting.attendance_count,
    }

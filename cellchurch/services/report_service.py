from datetime import datetime
from typing import Dict, Any, List, Optional

from cellchurch.database import models
from cellchurch.policy import AuthorizationContext, assert_permission, can_view_reports
from cellchurch.repositories.interfaces import ICellRepository, IMeetingRepository, INetworkRepository
from cellchurch.services.exceptions import CellNotFoundError, NetworkNotFoundError


class ReportService:
    """모임 기록을 전체/네트워크/셀 단위로 집계한 보고서를 제공합니다."""

    def __init__(self, meeting_repo: IMeetingRepository, network_repo: INetworkRepository,
                 cell_repo: ICellRepository):
        self.meeting_repo = meeting_repo
        self.network_repo = network_repo
        self.cell_repo = cell_repo

    def meeting_summary(self, ctx: AuthorizationContext, scope: str, resource_id: Optional[int] = None,
                        since: Optional[datetime] = None) -> Dict[str, Any]:
        """
        모임 횟수와 참석 인원을 집계합니다.

        Args:
            scope: 'global', 'network', 'cell' 중 하나.
            resource_id: network/cell 범위일 때 대상 ID.
            since: 주어지면 이 일시 이후의 모임만 집계합니다.

        Returns:
            전체 합계와 셀별 합계(cells)를 담은 딕셔너리.

        Raises:
            ValueError: 알 수 없는 scope일 때.
            NetworkNotFoundError / CellNotFoundError: 대상이 없을 때.
            AuthorizationError: 해당 범위의 보고서를 볼 수 없을 때.
        """
        if scope == "network":
            network = self.network_repo.find_by_id(resource_id) if resource_id is not None else None
            if not network:
                raise NetworkNotFoundError(f"Network with id '{resource_id}' not found.")
            assert_permission(can_view_reports(ctx, scope, network.id), "Not allowed to view this report.")
            meetings = self.meeting_repo.list_by_network(network.id)
        elif scope == "cell":
            cell = self.cell_repo.find_by_id(resource_id) if resource_id is not None else None
            if not cell:
                raise CellNotFoundError(f"Cell with id '{resource_id}' not found.")
            assert_permission(can_view_reports(ctx, scope, cell.id, cell.network_id),
                              "Not allowed to view this report.")
            meetings = self.meeting_repo.list_by_cell(cell.id)
        else:
            assert_permission(can_view_reports(ctx, scope), "Not allowed to view this report.")
            meetings = self.meeting_repo.list_all()

        if since is not None:
            meetings = [m for m in meetings if m.occurred_at >= since]
        return {"scope": scope, "resource_id": resource_id, **_summarize(meetings)}


def _summarize(meetings: List[models.Meeting]) -> Dict[str, Any]:
    per_cell: Dict[int, Dict[str, int]] = {}
    for meeting in meetings:
        entry = per_cell.setdefault(meeting.cell_id, {"meeting_count": 0, "total_attendance": 0})
        entry["meeting_count"] += 1
        entry["total_attendance"] += meeting.attendance_count or 0

    total_attendance = sum(e["total_attendance"] for e in per_cell.values())
    return {
        "meeting_count": len(meetings),
        "total_attendance": total_attendance,
        "average_attendance": round(total_attendance / len(meetings), 2) if meetings else 0,
        "cells": [{"cell_id": cell_id, **entry} for cell_id, entry in sorted(per_cell.items())],
    }

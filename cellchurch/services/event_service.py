import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

from cellchurch.database import models
from cellchurch.policy import AuthorizationContext, assert_permission, can_manage_events
from cellchurch.repositories.interfaces import IEventRepository
from cellchurch.services.exceptions import EventCreationError

logger = logging.getLogger(__name__)


class EventService:
    """교회 행사를 관리합니다."""

    def __init__(self, event_repo: IEventRepository):
        self.event_repo = event_repo

    def create_event(self, ctx: AuthorizationContext, title: str, start_at, end_at, description: str = None,
                     location: str = None, capacity: Optional[int] = None,
                     allow_registration: bool = True) -> Dict[str, Any]:
        """
        새로운 행사를 생성합니다. 관리자만 생성할 수 있습니다.

        Args:
            start_at, end_at: 행사 일시 (datetime 또는 ISO 8601 문자열).
            capacity: 최대 인원. 주어지면 1 이상이어야 합니다.

        Raises:
            AuthorizationError: 관리자가 아닐 때.
            EventCreationError: 제목이 없거나, 종료 일시가 시작 이후가 아니거나, 인원이 1 미만일 때.
        """
        assert_permission(can_manage_events(ctx), "Only administrators can manage events.")
        if not title:
            raise EventCreationError("Event title is required.")
        start_at, end_at = _to_datetime(start_at), _to_datetime(end_at)
        if end_at <= start_at:
            raise EventCreationError("End time must be after start time.")
        if capacity is not None and capacity < 1:
            raise EventCreationError("Capacity must be at least 1.")

        event = self.event_repo.create(models.Event(
            title=title,
            description=description,
            start_at=start_at,
            end_at=end_at,
            location=location,
            capacity=capacity,
            allow_registration=allow_registration,
            created_by=ctx.user_id,
        ))
        logger.info("Event %s created by %s", event.id, ctx.user_id)
        return _event_to_dict(event)

    def list_events(self, ctx: AuthorizationContext) -> List[Dict[str, Any]]:
        return [_event_to_dict(e) for e in self.event_repo.list_all()]


def _to_datetime(value) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value

def _event_to_dict(event: models.Event) -> Dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "start_at": event.start_at.isoformat(),
        "end_at": event.end_at.isoformat(),
        "location": event.location,
        "capacity": event.capacity,
        "allow_registration": event.allow_registration,
    }

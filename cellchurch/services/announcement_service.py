import logging
from datetime import datetime
from typing import Dict, Any, List

from cellchurch.database import models
from cellchurch.policy import AuthorizationContext, Role, assert_permission, can_manage_announcements, has_any_role
from cellchurch.repositories.interfaces import IAnnouncementRepository
from cellchurch.services.exceptions import AnnouncementCreationError, AnnouncementNotFoundError

logger = logging.getLogger(__name__)

AUDIENCES = ("ALL", "LEADERS", "MEMBERS")
LEADERSHIP_ROLES = (Role.ADMIN, Role.NETWORK_LEADER, Role.CELL_LEADER)


class AnnouncementService:
    """공지사항 작성과 게시, 대상별 조회를 담당합니다."""

    def __init__(self, announcement_repo: IAnnouncementRepository):
        self.announcement_repo = announcement_repo

    def create_announcement(self, ctx: AuthorizationContext, title: str, body: str, audience: str = "ALL",
                            publish_now: bool = False) -> Dict[str, Any]:
        """
        공지사항을 작성합니다. publish_now가 False이면 초안으로 저장됩니다.

        Raises:
            AuthorizationError: 관리자가 아닐 때.
            AnnouncementCreationError: 제목/본문이 없거나 대상 값이 올바르지 않을 때.
        """
        assert_permission(can_manage_announcements(ctx), "Only administrators can manage announcements.")
        if not title or not body:
            raise AnnouncementCreationError("Title and body are required.")
        audience = (audience or "ALL").upper()
        if audience not in AUDIENCES:
            raise AnnouncementCreationError(f"Unknown audience '{audience}'.")

        announcement = self.announcement_repo.create(models.Announcement(
            title=title,
            body=body,
            audience=audience,
            published_at=datetime.now() if publish_now else None,
            author_id=ctx.user_id,
        ))
        logger.info("Announcement %s created by %s (published=%s)", announcement.id, ctx.user_id, publish_now)
        return _announcement_to_dict(announcement)

    def publish_announcement(self, ctx: AuthorizationContext, announcement_id: int) -> Dict[str, Any]:
        """초안 공지를 게시합니다. 이미 게시된 공지는 그대로 반환합니다."""
        assert_permission(can_manage_announcements(ctx), "Only administrators can manage announcements.")
        announcement = self.announcement_repo.find_by_id(announcement_id)
        if not announcement:
            raise AnnouncementNotFoundError(f"Announcement with id '{announcement_id}' not found.")
        if announcement.published_at is None:
            announcement.published_at = datetime.now()
            announcement = self.announcement_repo.save(announcement)
        return _announcement_to_dict(announcement)

    def list_announcements(self, ctx: AuthorizationContext) -> List[Dict[str, Any]]:
        """
        요청자가 볼 수 있는 공지 목록을 조회합니다.
        관리자는 초안을 포함한 전체를, 그 외 사용자는 게시된 공지 중 자신이 대상인 것만 봅니다.
        """
        if can_manage_announcements(ctx):
            return [_announcement_to_dict(a) for a in self.announcement_repo.list_all(published_only=False)]

        visible = {"ALL", "MEMBERS"}
        if has_any_role(ctx, LEADERSHIP_ROLES):
            visible.add("LEADERS")
        return [
            _announcement_to_dict(a) for a in self.announcement_repo.list_all(published_only=True)
            if a.audience in visible
        ]


def _announcement_to_dict(announcement: models.Announcement) -> Dict[str, Any]:
    return {
        "id": announcement.id,
        "title": announcement.title,
        "body": announcement.body,
        "audience": announcement.audience,
        "published_at": announcement.published_at.isoformat() if announcement.published_at else None,
        "author_id": announcement.author_id,
    }

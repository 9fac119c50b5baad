from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text, func
from ..database import Base

AnnouncementAudience = Enum("ALL", "LEADERS", "MEMBERS", name="announcement_audience")

class Announcement(Base):
    """
    공지사항입니다. published_at이 비어 있으면 초안 상태입니다.
    audience가 LEADERS인 공지는 리더 역할을 가진 사용자에게만 보입니다.
    """
    __tablename__ = "announcements"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    audience = Column(AnnouncementAudience, nullable=False, default="ALL")
    published_at = Column(DateTime, nullable=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

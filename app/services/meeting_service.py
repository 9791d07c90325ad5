import logging
import uuid
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


class MeetingService:
    """Builds video-call room links for scheduled classes."""

    def __init__(self, base_url: Optional[str] = None, prefix: Optional[str] = None):
        self.base_url = (base_url or settings.MEETING_BASE_URL).rstrip("/")
        self.prefix = prefix or settings.MEETING_ROOM_PREFIX

    def create_meeting_link(self, session_id=None) -> str:
        room = f"{self.prefix}-{session_id or uuid.uuid4()}"
        link = f"{self.base_url}/{room}"
        logger.info(f"Meeting link generated: {link}")
        return link


meeting_service = MeetingService()

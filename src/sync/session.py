"""当前云端会话"""

from __future__ import annotations

from datamodel import CloudSession
from events import E, bus
from logger import logger

__all__ = ["SessionHolder"]


class SessionHolder:
    def __init__(self, session: CloudSession | None = None) -> None:
        self._session = session

    @classmethod
    def from_settings(cls, access_token: str, user_id: str) -> "SessionHolder":
        if access_token and user_id:
            return cls(CloudSession(access_token=access_token, user_id=user_id))
        return cls()

    def get(self) -> CloudSession | None:
        return self._session

    def set(self, session: CloudSession | None) -> None:
        self._session = session
        logger.info(f"云端会话已{'更新' if session else '清除'}")
        bus.emit(E.SESSION_CHANGED, session=session)

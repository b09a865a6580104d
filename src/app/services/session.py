"""
Session Store: 세션 범위 임시 저장소.

브라우저 sessionStorage 대체:
- 한 번의 제출 시도 동안 페이지 이동 간 유지
- 확인/처음부터 다시 시 삭제
- 세션 간 공유 없음 (세션 쿠키 = 키)
- 값은 JSON 문자열로 저장 (직렬화 왕복 보장)
- 유휴 세션은 ttl_seconds 후 만료, 새 세션 생성 시 만료 세션 일괄 회수
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from fastapi import Request, Response

from src.core.ids import generate_session_id
from src.domain.constants import DEFAULT_SESSION_COOKIE_NAME, DEFAULT_SESSION_TTL_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class _SessionEntry:
    items: dict[str, str] = field(default_factory=dict)
    touched_at: float = 0.0


class SessionStore:
    """
    In-memory 세션 저장소.

    Usage:
        store = SessionStore(ttl_seconds=3600)
        store.set(session_id, "validationResult", json.dumps(result.to_dict()))
        raw = store.get(session_id, "validationResult")
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, _SessionEntry] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def _entry(self, session_id: str, create: bool = False) -> _SessionEntry | None:
        now = self._clock()
        entry = self._sessions.get(session_id)
        if entry is not None and self._is_expired(entry, now):
            logger.info(f"Session expired: {session_id[:8]}...")
            del self._sessions[session_id]
            entry = None
        if entry is None and create:
            # 새 세션마다 버려진 만료 세션 회수
            self.purge_expired()
            entry = _SessionEntry()
            self._sessions[session_id] = entry
        if entry is not None:
            entry.touched_at = now
        return entry

    def _is_expired(self, entry: _SessionEntry, now: float) -> bool:
        return self.ttl_seconds > 0 and now - entry.touched_at > self.ttl_seconds

    def get(self, session_id: str, key: str) -> str | None:
        entry = self._entry(session_id)
        return entry.items.get(key) if entry is not None else None

    def set(self, session_id: str, key: str, value: str) -> None:
        entry = self._entry(session_id, create=True)
        assert entry is not None
        entry.items[key] = value

    def remove(self, session_id: str, *keys: str) -> None:
        entry = self._entry(session_id)
        if entry is None:
            return
        for key in keys:
            entry.items.pop(key, None)
        if not entry.items:
            del self._sessions[session_id]

    def purge_expired(self) -> int:
        """만료 세션 정리. 삭제된 세션 수 반환."""
        now = self._clock()
        expired = [
            sid for sid, entry in self._sessions.items() if self._is_expired(entry, now)
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)


# =============================================================================
# Session Cookie
# =============================================================================


def get_cookie_name(request: Request) -> str:
    config = getattr(request.app.state, "config", {}) or {}
    session_config = config.get("session", {}) or {}
    return str(session_config.get("cookie_name", DEFAULT_SESSION_COOKIE_NAME))


def get_session_store(request: Request) -> SessionStore:
    """app.state의 세션 저장소 (없으면 생성)."""
    store = getattr(request.app.state, "session_store", None)
    if store is None:
        store = SessionStore()
        request.app.state.session_store = store
    return store


def resolve_session_id(request: Request) -> tuple[str, bool]:
    """
    요청의 세션 ID.

    Returns:
        (session_id, is_new) - 쿠키가 없으면 새로 발급
    """
    session_id = request.cookies.get(get_cookie_name(request))
    if session_id:
        return session_id, False
    return generate_session_id(), True


def attach_session_cookie(
    request: Request,
    response: Response,
    session_id: str,
) -> Response:
    """응답에 세션 쿠키 설정 (HTTP-only, 브라우저 세션 쿠키)."""
    response.set_cookie(
        key=get_cookie_name(request),
        value=session_id,
        httponly=True,
        samesite="lax",
    )
    return response

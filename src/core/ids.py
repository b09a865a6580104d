"""
ID 생성: session_id, submission_id

규칙:
- session_id는 추측 불가능해야 함 (쿠키 값으로 사용)
- submission_id는 사람이 로그에서 찾기 쉬운 포맷
"""

import secrets
import uuid
from datetime import UTC, datetime

SUBMISSION_ID_PREFIX = "SUB-"


def generate_session_id() -> str:
    """
    Session ID 생성.

    URL-safe 랜덤 토큰 (32 bytes)

    Returns:
        session_id 문자열
    """
    return secrets.token_urlsafe(32)


def generate_submission_id() -> str:
    """
    Submission ID 생성.

    고유성 보장: UUID v4
    포맷: SUB-{timestamp}-{uuid[:8]}

    Returns:
        submission_id 문자열
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"{SUBMISSION_ID_PREFIX}{timestamp}-{unique}"

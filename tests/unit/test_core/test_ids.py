"""
test_ids.py - ID 생성 테스트

DoD:
- session_id 고유성 + 쿠키 안전 문자만
- submission_id 포맷: SUB-{YYYYmmddHHMMSS}-{8 hex}
"""

import re

from src.core.ids import generate_session_id, generate_submission_id

# =============================================================================
# generate_session_id 테스트
# =============================================================================


class TestGenerateSessionId:
    """generate_session_id 함수 테스트."""

    def test_unique(self):
        ids = {generate_session_id() for _ in range(100)}

        assert len(ids) == 100

    def test_url_safe(self):
        """쿠키 값으로 그대로 사용 가능."""
        session_id = generate_session_id()

        assert re.fullmatch(r"[A-Za-z0-9_-]+", session_id)
        assert len(session_id) >= 40


# =============================================================================
# generate_submission_id 테스트
# =============================================================================


class TestGenerateSubmissionId:
    """generate_submission_id 함수 테스트."""

    def test_format(self):
        submission_id = generate_submission_id()

        assert re.fullmatch(r"SUB-\d{14}-[0-9a-f]{8}", submission_id)

    def test_unique(self):
        assert generate_submission_id() != generate_submission_id()

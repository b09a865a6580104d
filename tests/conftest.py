"""
Pytest fixtures for the plan validation tests.

테스트 구성:
- 정상 케이스, 입력 누락 케이스, 외부 서비스 실패 케이스 분리
- 외부 API는 항상 mock (실제 호출 없음)
"""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
import yaml

from src.app.providers.base import AnalysisResult, DocumentAnalyzer
from src.app.services.session import SessionStore
from src.domain.schemas import Answer, ValidationResult
from tests.factories import (
    MINIMAL_PDF,
    QUESTION_COUNT,
    make_ai_answers,
    make_user_answers,
)

# =============================================================================
# Path / Config Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def test_config(tmp_path: Path) -> dict[str, Any]:
    """테스트용 설정 (제출 로그는 tmp_path)."""
    return {
        "ai": {
            "analyzer": {"provider": "openai", "model": "gpt-4o"},
            "analysis_timeout": 5,
        },
        "session": {"cookie_name": "plan_session", "ttl_seconds": 3600},
        "logging": {"level": "DEBUG"},
        "paths": {"submission_logs_dir": str(tmp_path / "submissions")},
    }


# =============================================================================
# Validation Result Fixtures
# =============================================================================


@pytest.fixture
def all_yes_answers() -> dict[int, Answer]:
    return make_user_answers(Answer.YES)


@pytest.fixture
def matching_result(all_yes_answers) -> ValidationResult:
    """전 질문 일치 결과."""
    return ValidationResult(
        user_answers=all_yes_answers,
        ai_answers=make_ai_answers({i: "yes" for i in range(QUESTION_COUNT)}),
    )


@pytest.fixture
def q2_mismatch_result(all_yes_answers) -> ValidationResult:
    """Q2만 불일치 (사용자 yes, AI no)."""
    ai: dict[int, str | None] = {i: "yes" for i in range(QUESTION_COUNT)}
    ai[2] = "no"
    return ValidationResult(user_answers=all_yes_answers, ai_answers=make_ai_answers(ai))


@pytest.fixture
def missing_q5_result(all_yes_answers) -> ValidationResult:
    """Q5 AI 답변 누락."""
    ai: dict[int, str | None] = {i: "yes" for i in range(QUESTION_COUNT) if i != 5}
    return ValidationResult(user_answers=all_yes_answers, ai_answers=make_ai_answers(ai))


# =============================================================================
# Analyzer / Session Fixtures
# =============================================================================


@pytest.fixture
def minimal_pdf() -> bytes:
    return MINIMAL_PDF


@pytest.fixture
def mock_analyzer() -> AsyncMock:
    """
    DocumentAnalyzer mock.

    기본: 전 질문 "yes". analyze.return_value / side_effect를 테스트에서 교체.
    """
    analyzer = AsyncMock(spec=DocumentAnalyzer)
    analyzer.provider_name = "mock"
    analyzer.model = "mock-model"
    analyzer.analyze.return_value = AnalysisResult(
        answers=make_ai_answers({i: "yes" for i in range(QUESTION_COUNT)}),
        provider="mock",
        model_requested="mock-model",
        model_used="mock-model",
    )
    return analyzer


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore(ttl_seconds=3600)

"""
Logging: 애플리케이션 로거 설정 + 제출 로그(submission log)

제출 로그 규칙:
- 해결 기록 필수 키: question_index, action, original_answer, resolved_answer
- 최종 제출 1건당 로그 1개, 파일명 submission_{submission_id}.json
"""

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.core.ids import generate_submission_id
from src.core.storage import atomic_write_json
from src.domain.schemas import ResolutionLog, SubmissionLog

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


# =============================================================================
# Logger Configuration
# =============================================================================


def configure_logging(config: dict[str, Any]) -> None:
    """
    루트 로거 설정.

    config["logging"]["level"] (기본 INFO), config["logging"]["format"]
    """
    logging_config = config.get("logging", {}) or {}
    level_name = str(logging_config.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=logging_config.get("format", DEFAULT_LOG_FORMAT),
    )


# =============================================================================
# Submission Log Management
# =============================================================================


def create_submission_log(session_id: str, question_count: int = 0) -> SubmissionLog:
    """
    새 SubmissionLog 생성.

    Args:
        session_id: 세션 ID
        question_count: 카탈로그 질문 수

    Returns:
        초기화된 SubmissionLog
    """
    now = datetime.now(UTC).isoformat()

    return SubmissionLog(
        submission_id=generate_submission_id(),
        session_id=session_id,
        started_at=now,
        result="pending",
        question_count=question_count,
    )


def emit_mismatch(log: SubmissionLog, question_index: int) -> None:
    """초기 mismatch 질문 기록."""
    if question_index not in log.mismatches:
        log.mismatches.append(question_index)


def emit_resolution(
    log: SubmissionLog,
    question_index: int,
    action: str,
    original_answer: str,
    resolved_answer: str,
    ai_answer: str | None = None,
) -> None:
    """
    mismatch 해결 이벤트 기록.

    Args:
        log: SubmissionLog 인스턴스
        question_index: 질문 인덱스
        action: "confirm" 또는 "change"
        original_answer: 사용자 원래 답변
        resolved_answer: 최종 답변
        ai_answer: 분석 서비스 답변 원문 (없으면 None)
    """
    log.resolutions.append(
        ResolutionLog(
            question_index=question_index,
            action=action,
            original_answer=original_answer,
            resolved_answer=resolved_answer,
            ai_answer=ai_answer,
        )
    )


def complete_submission_log(
    log: SubmissionLog,
    final_answers: dict[str, str],
) -> None:
    """
    SubmissionLog 완료 처리.

    Args:
        log: SubmissionLog 인스턴스
        final_answers: {"0": "yes", ...}
    """
    log.finished_at = datetime.now(UTC).isoformat()
    log.result = "success"
    log.final_answers = dict(final_answers)


def save_submission_log(log: SubmissionLog, logs_dir: Path) -> Path:
    """
    SubmissionLog를 파일로 저장.

    Args:
        log: SubmissionLog 인스턴스
        logs_dir: 로그 디렉터리 경로

    Returns:
        저장된 파일 경로
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"submission_{log.submission_id}.json"
    atomic_write_json(log_path, log.to_dict())
    return log_path

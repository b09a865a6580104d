"""
Core layer: 로깅, ID, 원자적 저장.

역할:
- 제출 감사 로그 (submission log)
- session_id / submission_id 발급
"""

from .ids import generate_session_id, generate_submission_id
from .logging import (
    complete_submission_log,
    configure_logging,
    create_submission_log,
    emit_mismatch,
    emit_resolution,
    save_submission_log,
)
from .storage import atomic_write_json

__all__ = [
    # ids
    "generate_session_id",
    "generate_submission_id",
    # logging
    "configure_logging",
    "create_submission_log",
    "emit_mismatch",
    "emit_resolution",
    "complete_submission_log",
    "save_submission_log",
    # storage
    "atomic_write_json",
]

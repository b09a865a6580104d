"""
Application Services.

역할:
- analysis: PDF + 답변 → Document Analyzer → ValidationResult
- reconcile: 질문별 match/mismatch 상태 전이 + 제출 가능 판정
- session: 세션 범위 임시 저장소
- flow: intake → reconciliation → confirmation 단계 제어
"""

from .analysis import AnalysisService
from .flow import Stage, SubmissionFlow
from .reconcile import ReconciliationEngine
from .session import SessionStore

__all__ = [
    "AnalysisService",
    "ReconciliationEngine",
    "SessionStore",
    "Stage",
    "SubmissionFlow",
]

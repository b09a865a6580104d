"""
Data schemas for plan validation.

규칙:
- 질문 인덱스: 내부는 int, JSON 직렬화 시 문자열 키 ("0".."N-1")
- 답변은 Answer enum, AI 답변 원문은 그대로 보존 (유효성은 suggestion으로 판단)
- 질문 상태는 QuestionStatus enum (자유 문자열 금지)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.domain.constants import QUESTION_TEXTS

# =============================================================================
# Enums
# =============================================================================


class Answer(str, Enum):
    """예/아니오 답변."""

    YES = "yes"
    NO = "no"

    def negate(self) -> "Answer":
        """반대 답변."""
        return Answer.NO if self is Answer.YES else Answer.YES

    @classmethod
    def parse(cls, value: Any) -> "Answer | None":
        """
        엄격한 파싱: 정확히 "yes" 또는 "no"만 허용.

        대소문자 변형("Yes"), 공백, 비문자열 → None
        """
        if isinstance(value, str) and value in ("yes", "no"):
            return cls(value)
        return None


class QuestionStatus(str, Enum):
    """
    질문별 reconciliation 상태.

    match/confirmed/changed는 종료 상태, mismatch만 제출을 막음.
    """

    MATCH = "match"
    MISMATCH = "mismatch"
    CONFIRMED = "confirmed"
    CHANGED = "changed"

    @property
    def blocks_submission(self) -> bool:
        return self is QuestionStatus.MISMATCH


class ResolutionAction(str, Enum):
    """mismatch 해결 액션."""

    CONFIRM = "confirm"  # 내 답변 유지
    CHANGE = "change"    # 답변 변경 (AI 제안 또는 반대값)


# =============================================================================
# Question Catalog
# =============================================================================


@dataclass(frozen=True)
class Question:
    """카탈로그 질문 (불변)."""

    index: int
    text: str


QUESTION_CATALOG: tuple[Question, ...] = tuple(
    Question(index=i, text=text) for i, text in enumerate(QUESTION_TEXTS)
)


def _parse_index(key: Any, question_count: int) -> int | None:
    """
    질문 인덱스 키 파싱.

    "3" / 3 → 3, 범위 밖이거나 숫자가 아니면 None
    """
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        index = key
    elif isinstance(key, str) and key.strip().isdigit():
        index = int(key.strip())
    else:
        return None
    return index if 0 <= index < question_count else None


# =============================================================================
# Answers
# =============================================================================


def parse_user_answers(data: Any, question_count: int) -> dict[int, Answer]:
    """
    사용자 답변 매핑 파싱.

    모든 질문 인덱스에 yes/no가 있어야 함.

    Args:
        data: {"0": "yes", "1": "no", ...}
        question_count: 카탈로그 질문 수

    Returns:
        {0: Answer.YES, 1: Answer.NO, ...}

    Raises:
        ValueError: 형식 오류 또는 누락
    """
    if not isinstance(data, dict):
        raise ValueError("answers must be a JSON object")

    answers: dict[int, Answer] = {}
    for key, value in data.items():
        index = _parse_index(key, question_count)
        if index is None:
            continue
        answer = Answer.parse(value)
        if answer is None:
            raise ValueError(f"invalid answer for question {index}: {value!r}")
        answers[index] = answer

    missing = [i for i in range(question_count) if i not in answers]
    if missing:
        raise ValueError(f"missing answers for questions {missing}")

    return dict(sorted(answers.items()))


@dataclass(frozen=True)
class AIAnswer:
    """
    분석 서비스의 질문별 답변.

    answer는 원문 그대로 보존. "yes"/"no"가 아닐 수 있음.
    """

    answer: str | None
    reasoning: str = ""

    @property
    def suggestion(self) -> Answer | None:
        """유효한 제안 답변 (엄격히 yes/no일 때만)."""
        return Answer.parse(self.answer)

    def to_dict(self) -> dict[str, Any]:
        return {"answer": self.answer, "reasoning": self.reasoning}

    @classmethod
    def from_dict(cls, data: Any) -> "AIAnswer | None":
        """dict가 아니면 None (해당 질문은 '제안 없음')."""
        if not isinstance(data, dict):
            return None
        raw_answer = data.get("answer")
        reasoning = data.get("reasoning")
        return cls(
            answer=raw_answer if isinstance(raw_answer, str) else None,
            reasoning=reasoning if isinstance(reasoning, str) else "",
        )


def parse_ai_answers(data: Any, question_count: int) -> dict[int, AIAnswer]:
    """
    분석 응답 JSON → 질문별 AIAnswer.

    누락/형식 오류 항목은 결과에서 빠짐 (부분 응답 허용).
    """
    if not isinstance(data, dict):
        return {}

    answers: dict[int, AIAnswer] = {}
    for key, value in data.items():
        index = _parse_index(key, question_count)
        if index is None:
            continue
        ai_answer = AIAnswer.from_dict(value)
        if ai_answer is not None:
            answers[index] = ai_answer
    return dict(sorted(answers.items()))


# =============================================================================
# Validation Result
# =============================================================================


@dataclass(frozen=True)
class ValidationResult:
    """
    제출 1회당 생성되는 불변 스냅샷.

    reconciliation의 읽기 전용 입력.
    """

    user_answers: dict[int, Answer]
    ai_answers: dict[int, AIAnswer]

    def ai_answer(self, index: int) -> AIAnswer | None:
        return self.ai_answers.get(index)

    def to_dict(self) -> dict[str, Any]:
        """세션/응답 JSON (camelCase)."""
        return {
            "userAnswers": {
                str(i): answer.value for i, answer in sorted(self.user_answers.items())
            },
            "aiAnswers": {
                str(i): ai.to_dict() for i, ai in sorted(self.ai_answers.items())
            },
        }

    @classmethod
    def from_dict(
        cls,
        data: Any,
        question_count: int = len(QUESTION_CATALOG),
    ) -> "ValidationResult":
        """
        세션에 저장된 JSON 복원.

        Raises:
            ValueError: userAnswers 누락/불완전
        """
        if not isinstance(data, dict):
            raise ValueError("validation result must be a JSON object")
        return cls(
            user_answers=parse_user_answers(data.get("userAnswers"), question_count),
            ai_answers=parse_ai_answers(data.get("aiAnswers"), question_count),
        )


# =============================================================================
# Reconciliation State
# =============================================================================


@dataclass(frozen=True)
class QuestionState:
    """질문별 reconciliation 단위."""

    current_answer: Answer
    status: QuestionStatus

    def to_dict(self) -> dict[str, str]:
        return {
            "currentAnswer": self.current_answer.value,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "QuestionState":
        """
        Raises:
            ValueError: 형식 오류
        """
        if not isinstance(data, dict):
            raise ValueError("question state must be a JSON object")
        answer = Answer.parse(data.get("currentAnswer"))
        if answer is None:
            raise ValueError(f"invalid currentAnswer: {data.get('currentAnswer')!r}")
        try:
            status = QuestionStatus(data.get("status"))
        except ValueError as e:
            raise ValueError(f"invalid status: {data.get('status')!r}") from e
        return cls(current_answer=answer, status=status)


def states_to_dict(states: dict[int, QuestionState]) -> dict[str, dict[str, str]]:
    """질문 상태 집합 → JSON."""
    return {str(i): state.to_dict() for i, state in sorted(states.items())}


def states_from_dict(data: Any, question_count: int) -> dict[int, QuestionState]:
    """
    JSON → 질문 상태 집합. 모든 인덱스가 있어야 함.

    Raises:
        ValueError: 형식 오류 또는 누락
    """
    if not isinstance(data, dict):
        raise ValueError("question states must be a JSON object")

    states: dict[int, QuestionState] = {}
    for key, value in data.items():
        index = _parse_index(key, question_count)
        if index is None:
            raise ValueError(f"unknown question index: {key!r}")
        states[index] = QuestionState.from_dict(value)

    missing = [i for i in range(question_count) if i not in states]
    if missing:
        raise ValueError(f"missing states for questions {missing}")
    return dict(sorted(states.items()))


@dataclass(frozen=True)
class FinalAnswerSet:
    """
    최종 답변 집합.

    mismatch가 하나도 없을 때만 생성. 확인 단계로 전달.
    """

    states: dict[int, QuestionState]

    def answers(self) -> dict[int, Answer]:
        return {i: state.current_answer for i, state in self.states.items()}

    def to_dict(self) -> dict[str, dict[str, str]]:
        return states_to_dict(self.states)

    @classmethod
    def from_dict(
        cls,
        data: Any,
        question_count: int = len(QUESTION_CATALOG),
    ) -> "FinalAnswerSet":
        """
        Raises:
            ValueError: 형식 오류, 누락, 미해결 mismatch 포함
        """
        states = states_from_dict(data, question_count)
        unresolved = [i for i, s in states.items() if s.status.blocks_submission]
        if unresolved:
            raise ValueError(f"unresolved mismatches in final answers: {unresolved}")
        return cls(states=states)


# =============================================================================
# Submission Logging Schemas
# =============================================================================


@dataclass
class ResolutionLog:
    """
    mismatch 해결 기록.

    필수 키: question_index, action, original_answer, resolved_answer
    """

    question_index: int
    action: str  # confirm or change
    original_answer: str
    resolved_answer: str
    ai_answer: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_index": self.question_index,
            "action": self.action,
            "original_answer": self.original_answer,
            "resolved_answer": self.resolved_answer,
            "ai_answer": self.ai_answer,
        }


@dataclass
class SubmissionLog:
    """
    제출 로그.

    세션의 최종 제출 1건에 대한 감사 기록.
    """

    submission_id: str
    session_id: str
    started_at: str  # ISO 8601
    finished_at: str | None = None
    result: str = "pending"  # pending, success

    question_count: int = 0
    mismatches: list[int] = field(default_factory=list)
    resolutions: list[ResolutionLog] = field(default_factory=list)
    final_answers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "submission_id": self.submission_id,
            "session_id": self.session_id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "question_count": self.question_count,
            "mismatches": list(self.mismatches),
            "resolutions": [r.to_dict() for r in self.resolutions],
            "final_answers": dict(self.final_answers),
        }

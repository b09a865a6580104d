"""
Reconciliation Engine: 사용자 답변 vs 분석 답변 불일치 해결.

상태 전이 (질문별):
- (init) → match | mismatch     : 사용자 답변 == AI 답변 원문이면 match
- mismatch → confirmed          : "내 답변 유지", currentAnswer 그대로
- mismatch → changed            : AI 제안(유효한 yes/no)이 있으면 그 값, 없으면 반대값
- match / confirmed / changed   : 더 이상 전이 없음

제출 가능 여부는 전체 상태 집합에 대한 순수 함수 (캐시 플래그 없음).
"""

import logging
from collections.abc import Mapping

from src.domain.errors import (
    IllegalTransitionError,
    InvalidInputError,
    SubmissionBlockedError,
)
from src.domain.schemas import (
    AIAnswer,
    Answer,
    FinalAnswerSet,
    QuestionState,
    QuestionStatus,
    ResolutionAction,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# 허용된 전이: {현재 상태: {액션: 다음 상태}}
TRANSITIONS: dict[QuestionStatus, dict[ResolutionAction, QuestionStatus]] = {
    QuestionStatus.MISMATCH: {
        ResolutionAction.CONFIRM: QuestionStatus.CONFIRMED,
        ResolutionAction.CHANGE: QuestionStatus.CHANGED,
    },
}


def derive_initial_state(user_answer: Answer, ai_answer: AIAnswer | None) -> QuestionState:
    """
    초기 상태 계산.

    AI 답변이 없으면 mismatch (비교 대상 없음 = 불일치).
    """
    ai_value = ai_answer.answer if ai_answer is not None else None
    status = (
        QuestionStatus.MATCH if user_answer.value == ai_value else QuestionStatus.MISMATCH
    )
    return QuestionState(current_answer=user_answer, status=status)


def derive_initial_states(result: ValidationResult) -> dict[int, QuestionState]:
    """ValidationResult → 질문별 초기 상태."""
    return {
        index: derive_initial_state(user_answer, result.ai_answer(index))
        for index, user_answer in sorted(result.user_answers.items())
    }


def can_submit(states: Mapping[int, QuestionState]) -> bool:
    """mismatch가 하나도 없으면 제출 가능."""
    return not any(state.status.blocks_submission for state in states.values())


def unresolved_indices(states: Mapping[int, QuestionState]) -> list[int]:
    """미해결 mismatch 질문 인덱스."""
    return sorted(i for i, state in states.items() if state.status.blocks_submission)


class ReconciliationEngine:
    """
    Reconciliation 엔진.

    ValidationResult(읽기 전용) + 질문별 상태 집합.
    상태는 confirm/change로만 변경.

    Usage:
        engine = ReconciliationEngine(result)
        engine.change(2)
        if engine.can_submit():
            final = engine.finalize()
    """

    def __init__(
        self,
        result: ValidationResult,
        states: Mapping[int, QuestionState] | None = None,
    ):
        """
        Args:
            result: 분석 결과 스냅샷
            states: 복원할 상태 (None이면 초기 상태 계산)
        """
        self.result = result
        if states is None:
            self._states = derive_initial_states(result)
        else:
            if set(states) != set(result.user_answers):
                raise ValueError("question states do not match validation result")
            self._states = dict(sorted(states.items()))

    @property
    def states(self) -> dict[int, QuestionState]:
        """상태 집합 사본."""
        return dict(self._states)

    def state(self, index: int) -> QuestionState:
        if index not in self._states:
            raise InvalidInputError("Unknown question", question_index=index)
        return self._states[index]

    def original_answer(self, index: int) -> Answer:
        """사용자 원래 답변."""
        self.state(index)
        return self.result.user_answers[index]

    def suggestion(self, index: int) -> Answer | None:
        """유효한 AI 제안 (없으면 None)."""
        ai_answer = self.result.ai_answer(index)
        return ai_answer.suggestion if ai_answer is not None else None

    def change_target(self, index: int) -> Answer:
        """change 액션 시 적용될 답변 (AI 제안 또는 현재 답변의 반대)."""
        suggestion = self.suggestion(index)
        if suggestion is not None:
            return suggestion
        return self.state(index).current_answer.negate()

    # =========================================================================
    # Transitions
    # =========================================================================

    def apply(self, index: int, action: ResolutionAction) -> QuestionState:
        """
        액션 적용.

        Raises:
            InvalidInputError: 알 수 없는 질문
            IllegalTransitionError: 현재 상태에서 허용되지 않은 액션
        """
        current = self.state(index)
        next_status = TRANSITIONS.get(current.status, {}).get(action)
        if next_status is None:
            raise IllegalTransitionError(
                question_index=index,
                status=current.status.value,
                action=action.value,
            )

        if action is ResolutionAction.CHANGE:
            new_answer = self.change_target(index)
        else:
            new_answer = current.current_answer

        new_state = QuestionState(current_answer=new_answer, status=next_status)
        self._states[index] = new_state

        logger.info(
            f"Question {index}: {current.status.value} -> {next_status.value} "
            f"({current.current_answer.value} -> {new_answer.value})"
        )
        return new_state

    def confirm(self, index: int) -> QuestionState:
        """내 답변 유지."""
        return self.apply(index, ResolutionAction.CONFIRM)

    def change(self, index: int) -> QuestionState:
        """답변 변경."""
        return self.apply(index, ResolutionAction.CHANGE)

    # =========================================================================
    # Submission Gate
    # =========================================================================

    def can_submit(self) -> bool:
        return can_submit(self._states)

    def unresolved(self) -> list[int]:
        return unresolved_indices(self._states)

    def initial_mismatches(self) -> list[int]:
        """초기 상태 기준 mismatch였던 질문."""
        return unresolved_indices(derive_initial_states(self.result))

    def finalize(self) -> FinalAnswerSet:
        """
        최종 답변 집합 생성.

        Raises:
            SubmissionBlockedError: 미해결 mismatch 존재
        """
        unresolved = self.unresolved()
        if unresolved:
            raise SubmissionBlockedError(unresolved=unresolved)
        return FinalAnswerSet(states=self.states)

"""
Submission Flow Controller: intake → reconciliation → confirmation.

규칙:
- 각 단계는 이전 단계 결과가 세션에 있어야 진입 가능
- 없거나 손상됐으면 MissingPreconditionError → 1단계로 redirect
- 제출 시 작업 상태(validationResult, questionStates)는 삭제, finalAnswers만 남김
- 처음부터 다시 / 다른 계획 제출 시 세션 키 전부 삭제
"""

import json
import logging
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any

from fastapi import Request

from src.app.services.reconcile import ReconciliationEngine
from src.app.services.session import SessionStore, get_session_store
from src.core.logging import (
    complete_submission_log,
    create_submission_log,
    emit_mismatch,
    emit_resolution,
    save_submission_log,
)
from src.domain.constants import (
    SESSION_FINAL_ANSWERS_KEY,
    SESSION_QUESTION_STATES_KEY,
    SESSION_VALIDATION_RESULT_KEY,
)
from src.domain.errors import MissingPreconditionError
from src.domain.schemas import (
    QUESTION_CATALOG,
    FinalAnswerSet,
    Question,
    QuestionStatus,
    ResolutionAction,
    SubmissionLog,
    ValidationResult,
    states_from_dict,
    states_to_dict,
)

logger = logging.getLogger(__name__)

ALL_SESSION_KEYS = (
    SESSION_VALIDATION_RESULT_KEY,
    SESSION_QUESTION_STATES_KEY,
    SESSION_FINAL_ANSWERS_KEY,
)


class Stage(str, Enum):
    """제출 흐름 단계."""

    INTAKE = "intake"
    RECONCILIATION = "reconciliation"
    CONFIRMATION = "confirmation"


class SubmissionFlow:
    """
    세션 1개의 제출 흐름.

    요청마다 생성. 상태는 SessionStore에만 존재.
    """

    def __init__(
        self,
        store: SessionStore,
        session_id: str,
        config: dict[str, Any] | None = None,
        questions: Sequence[Question] = QUESTION_CATALOG,
    ):
        self.store = store
        self.session_id = session_id
        self.config = config or {}
        self.questions = tuple(questions)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    # =========================================================================
    # Session JSON helpers
    # =========================================================================

    def _load_json(self, key: str) -> Any | None:
        raw = self.store.get(self.session_id, key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Corrupt session value for {key!r}; discarding")
            self.store.remove(self.session_id, key)
            return None

    def _save_json(self, key: str, data: Any) -> None:
        self.store.set(self.session_id, key, json.dumps(data))

    # =========================================================================
    # Stage 1 → 2
    # =========================================================================

    def begin_reconciliation(self, result: ValidationResult) -> None:
        """분석 결과 저장. 이전 제출의 잔여 상태는 삭제."""
        self.store.remove(
            self.session_id, SESSION_QUESTION_STATES_KEY, SESSION_FINAL_ANSWERS_KEY
        )
        self._save_json(SESSION_VALIDATION_RESULT_KEY, result.to_dict())

    # =========================================================================
    # Stage 2
    # =========================================================================

    def load_engine(self) -> ReconciliationEngine:
        """
        Reconciliation 엔진 복원.

        Raises:
            MissingPreconditionError: validationResult 없음/손상
        """
        data = self._load_json(SESSION_VALIDATION_RESULT_KEY)
        if data is None:
            raise MissingPreconditionError(stage=Stage.RECONCILIATION.value)

        try:
            result = ValidationResult.from_dict(data, self.question_count)
        except ValueError as e:
            logger.error(f"Error parsing validation result: {e}")
            self.store.remove(self.session_id, SESSION_VALIDATION_RESULT_KEY)
            raise MissingPreconditionError(
                stage=Stage.RECONCILIATION.value, detail=str(e)
            ) from e

        states_data = self._load_json(SESSION_QUESTION_STATES_KEY)
        if states_data is not None:
            try:
                states = states_from_dict(states_data, self.question_count)
                return ReconciliationEngine(result, states)
            except ValueError as e:
                logger.warning(f"Discarding corrupt question states: {e}")

        engine = ReconciliationEngine(result)
        self._save_states(engine)
        return engine

    def _save_states(self, engine: ReconciliationEngine) -> None:
        self._save_json(SESSION_QUESTION_STATES_KEY, states_to_dict(engine.states))

    def resolve(self, index: int, action: ResolutionAction) -> ReconciliationEngine:
        """
        mismatch 해결 액션 적용 후 저장.

        Raises:
            MissingPreconditionError, InvalidInputError, IllegalTransitionError
        """
        engine = self.load_engine()
        engine.apply(index, action)
        self._save_states(engine)
        return engine

    # =========================================================================
    # Stage 2 → 3
    # =========================================================================

    def submit(self) -> FinalAnswerSet:
        """
        최종 제출.

        Raises:
            MissingPreconditionError, SubmissionBlockedError
        """
        engine = self.load_engine()
        final = engine.finalize()

        submission_log = self._build_submission_log(engine, final)
        self._write_submission_log(submission_log)

        self._save_json(SESSION_FINAL_ANSWERS_KEY, final.to_dict())
        self.store.remove(
            self.session_id, SESSION_VALIDATION_RESULT_KEY, SESSION_QUESTION_STATES_KEY
        )
        return final

    def _build_submission_log(
        self,
        engine: ReconciliationEngine,
        final: FinalAnswerSet,
    ) -> SubmissionLog:
        submission_log = create_submission_log(self.session_id, self.question_count)

        for index in engine.initial_mismatches():
            emit_mismatch(submission_log, index)

        for index, state in final.states.items():
            if state.status not in (QuestionStatus.CONFIRMED, QuestionStatus.CHANGED):
                continue
            ai_answer = engine.result.ai_answer(index)
            action = (
                ResolutionAction.CONFIRM
                if state.status is QuestionStatus.CONFIRMED
                else ResolutionAction.CHANGE
            )
            emit_resolution(
                submission_log,
                question_index=index,
                action=action.value,
                original_answer=engine.original_answer(index).value,
                resolved_answer=state.current_answer.value,
                ai_answer=ai_answer.answer if ai_answer is not None else None,
            )

        complete_submission_log(
            submission_log,
            final_answers={str(i): a.value for i, a in final.answers().items()},
        )
        return submission_log

    def _write_submission_log(self, submission_log: SubmissionLog) -> Path | None:
        logger.info(
            f"Submission {submission_log.submission_id}: "
            f"mismatches={submission_log.mismatches} "
            f"resolutions={len(submission_log.resolutions)}"
        )
        logs_dir = (self.config.get("paths", {}) or {}).get("submission_logs_dir")
        if not logs_dir:
            return None
        return save_submission_log(submission_log, Path(logs_dir))

    # =========================================================================
    # Stage 3
    # =========================================================================

    def load_final_answers(self) -> FinalAnswerSet:
        """
        Raises:
            MissingPreconditionError: finalAnswers 없음/손상
        """
        data = self._load_json(SESSION_FINAL_ANSWERS_KEY)
        if data is None:
            raise MissingPreconditionError(stage=Stage.CONFIRMATION.value)
        try:
            return FinalAnswerSet.from_dict(data, self.question_count)
        except ValueError as e:
            logger.error(f"Error parsing final answers: {e}")
            self.store.remove(self.session_id, SESSION_FINAL_ANSWERS_KEY)
            raise MissingPreconditionError(
                stage=Stage.CONFIRMATION.value, detail=str(e)
            ) from e

    def reset(self) -> None:
        """세션 작업 상태 전부 삭제 (처음부터 다시 / 다른 계획 제출)."""
        self.store.remove(self.session_id, *ALL_SESSION_KEYS)


def get_submission_flow(request: Request, session_id: str) -> SubmissionFlow:
    """요청 세션의 SubmissionFlow."""
    config = getattr(request.app.state, "config", {}) or {}
    return SubmissionFlow(get_session_store(request), session_id, config)

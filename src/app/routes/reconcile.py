"""
Reconcile Routes: 불일치 해결 + 최종 확인.

페이지:
- GET /results → 질문별 비교 화면
- POST /results/{index}/confirm, /results/{index}/change → 해결 후 /results
- POST /results/submit → /confirmation (미해결 시 409 + 안내)
- POST /results/start-over → 세션 삭제 후 /
- GET /confirmation → 최종 답변
- POST /confirmation/done → 세션 삭제 후 /

API:
- GET /api/reconciliation
- POST /api/reconciliation/{index}/confirm, /{index}/change
- POST /api/reconciliation/submit
- POST /api/reconciliation/reset
- GET /api/confirmation

선행 단계 결과가 없으면: 페이지는 / 로 redirect, API는 409.
"""

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from src.app.services.flow import SubmissionFlow, get_submission_flow
from src.app.services.reconcile import ReconciliationEngine
from src.app.services.session import resolve_session_id
from src.domain.errors import (
    MissingPreconditionError,
    PlanValidationError,
    SubmissionBlockedError,
)
from src.domain.schemas import (
    QUESTION_CATALOG,
    FinalAnswerSet,
    QuestionStatus,
    ResolutionAction,
    states_to_dict,
)

logger = logging.getLogger(__name__)

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints

templates = Jinja2Templates(directory=Path(__file__).parent.parent / "templates")

SEE_OTHER = 303


def get_flow(request: Request) -> SubmissionFlow:
    session_id, _ = resolve_session_id(request)
    return get_submission_flow(request, session_id)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=SEE_OTHER)


# =============================================================================
# View Models
# =============================================================================


def build_question_rows(engine: ReconciliationEngine) -> list[dict[str, Any]]:
    """결과 화면 행 데이터."""
    rows = []
    for question in QUESTION_CATALOG:
        state = engine.state(question.index)
        ai_answer = engine.result.ai_answer(question.index)
        change_target = engine.change_target(question.index)
        rows.append({
            "index": question.index,
            "text": question.text,
            "status": state.status.value,
            "current_answer": state.current_answer.value,
            "original_answer": engine.original_answer(question.index).value,
            "ai_answer": (ai_answer.answer if ai_answer and ai_answer.answer else None),
            "reasoning": ai_answer.reasoning if ai_answer else "",
            "is_mismatch": state.status is QuestionStatus.MISMATCH,
            "is_changed": state.status is QuestionStatus.CHANGED,
            "change_label": (
                "Use Suggested"
                if engine.suggestion(question.index) is not None
                else f"Change to {change_target.value.capitalize()}"
            ),
        })
    return rows


def reconciliation_payload(engine: ReconciliationEngine) -> dict[str, Any]:
    """Reconciliation API 응답."""
    return {
        "validationResult": engine.result.to_dict(),
        "questionStates": states_to_dict(engine.states),
        "canSubmit": engine.can_submit(),
        "unresolved": engine.unresolved(),
    }


def confirmation_rows(final: FinalAnswerSet) -> list[dict[str, Any]]:
    return [
        {
            "index": question.index,
            "text": question.text,
            "answer": final.states[question.index].current_answer.value,
            "status": final.states[question.index].status.value,
        }
        for question in QUESTION_CATALOG
    ]


# =============================================================================
# Page Routes (HTML)
# =============================================================================


def render_results(
    request: Request,
    engine: ReconciliationEngine,
    error: str | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "results.html",
        {
            "rows": build_question_rows(engine),
            "can_submit": engine.can_submit(),
            "unresolved_count": len(engine.unresolved()),
            "error": error,
        },
        status_code=status_code,
    )


@router.get("/results", response_class=HTMLResponse)
async def results_page(request: Request) -> Response:
    """질문별 비교 화면."""
    try:
        engine = get_flow(request).load_engine()
    except MissingPreconditionError:
        return redirect("/")
    return render_results(request, engine)


async def _resolve_page(request: Request, index: int, action: ResolutionAction) -> Response:
    flow = get_flow(request)
    try:
        flow.resolve(index, action)
    except MissingPreconditionError:
        return redirect("/")
    except PlanValidationError as e:
        logger.warning(f"Resolution rejected: {e.to_dict()}")
    return redirect("/results")


@router.post("/results/{index}/confirm")
async def confirm_answer_page(request: Request, index: int) -> Response:
    """내 답변 유지."""
    return await _resolve_page(request, index, ResolutionAction.CONFIRM)


@router.post("/results/{index}/change")
async def change_answer_page(request: Request, index: int) -> Response:
    """답변 변경."""
    return await _resolve_page(request, index, ResolutionAction.CHANGE)


@router.post("/results/submit")
async def submit_page(request: Request) -> Response:
    """최종 제출."""
    flow = get_flow(request)
    try:
        flow.submit()
    except MissingPreconditionError:
        return redirect("/")
    except SubmissionBlockedError as e:
        return render_results(
            request, flow.load_engine(), error=e.message, status_code=e.http_status
        )
    return redirect("/confirmation")


@router.post("/results/start-over")
async def start_over_page(request: Request) -> Response:
    """처음부터 다시."""
    get_flow(request).reset()
    return redirect("/")


@router.get("/confirmation", response_class=HTMLResponse)
async def confirmation_page(request: Request) -> Response:
    """최종 답변 화면."""
    try:
        final = get_flow(request).load_final_answers()
    except MissingPreconditionError:
        return redirect("/")
    return templates.TemplateResponse(
        request,
        "confirmation.html",
        {"rows": confirmation_rows(final)},
    )


@router.post("/confirmation/done")
async def confirmation_done_page(request: Request) -> Response:
    """다른 계획 제출."""
    get_flow(request).reset()
    return redirect("/")


# =============================================================================
# API Routes
# =============================================================================


def error_response(error: PlanValidationError) -> JSONResponse:
    return JSONResponse(status_code=error.http_status, content=error.to_response())


@api_router.get("/reconciliation")
async def get_reconciliation(request: Request) -> JSONResponse:
    """현재 reconciliation 상태."""
    try:
        engine = get_flow(request).load_engine()
    except MissingPreconditionError as e:
        return error_response(e)
    return JSONResponse(content=reconciliation_payload(engine))


async def _resolve_api(request: Request, index: int, action: ResolutionAction) -> JSONResponse:
    try:
        engine = get_flow(request).resolve(index, action)
    except PlanValidationError as e:
        return error_response(e)
    return JSONResponse(content=reconciliation_payload(engine))


@api_router.post("/reconciliation/{index}/confirm")
async def confirm_answer(request: Request, index: int) -> JSONResponse:
    return await _resolve_api(request, index, ResolutionAction.CONFIRM)


@api_router.post("/reconciliation/{index}/change")
async def change_answer(request: Request, index: int) -> JSONResponse:
    return await _resolve_api(request, index, ResolutionAction.CHANGE)


@api_router.post("/reconciliation/submit")
async def submit_answers(request: Request) -> JSONResponse:
    """
    최종 제출.

    Returns:
        {finalAnswers} 또는 409 {error, errorType?}
    """
    try:
        final = get_flow(request).submit()
    except PlanValidationError as e:
        return error_response(e)
    return JSONResponse(content={"finalAnswers": final.to_dict()})


@api_router.post("/reconciliation/reset")
async def reset_submission(request: Request) -> JSONResponse:
    """세션 작업 상태 삭제."""
    get_flow(request).reset()
    return JSONResponse(content={"status": "ok"})


@api_router.get("/confirmation")
async def get_confirmation(request: Request) -> JSONResponse:
    try:
        final = get_flow(request).load_final_answers()
    except MissingPreconditionError as e:
        return error_response(e)
    return JSONResponse(content={"finalAnswers": final.to_dict()})

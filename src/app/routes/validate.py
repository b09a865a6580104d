"""
Validate Routes: 계획서 업로드 + 답변 입력 → 분석.

- GET / → 입력 화면 (질문 8개 + PDF 선택)
- POST /api/validate → 분석 실행, ValidationResult 세션 저장
"""

import logging
from pathlib import Path

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from src.app.services.analysis import (
    AnalysisService,
    parse_user_answers_json,
    validate_document,
)
from src.app.services.flow import get_submission_flow
from src.app.services.session import attach_session_cookie, resolve_session_id
from src.domain.constants import ERROR_TOAST_DURATION_MS, QUOTA_TOAST_DURATION_MS
from src.domain.errors import InvalidInputError, PlanValidationError
from src.domain.schemas import QUESTION_CATALOG

logger = logging.getLogger(__name__)

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints

templates = Jinja2Templates(directory=Path(__file__).parent.parent / "templates")


# =============================================================================
# Page Routes (HTML)
# =============================================================================


@router.get("/", response_class=HTMLResponse)
async def intake_page(request: Request) -> HTMLResponse:
    """입력 화면."""
    return templates.TemplateResponse(
        request,
        "intake.html",
        {
            "questions": QUESTION_CATALOG,
            "error_toast_ms": ERROR_TOAST_DURATION_MS,
            "quota_toast_ms": QUOTA_TOAST_DURATION_MS,
        },
    )


# =============================================================================
# API Routes
# =============================================================================


def error_response(error: PlanValidationError) -> JSONResponse:
    """도메인 에러 → {error, errorType?} JSON 응답."""
    return JSONResponse(status_code=error.http_status, content=error.to_response())


@api_router.post("/validate")
async def validate_plan(
    request: Request,
    pdf: UploadFile | str | None = File(None),  # 문자열 필드도 받아 400으로 처리
    userAnswers: str | None = Form(None),  # noqa: N803 - 폼 필드명 유지
) -> JSONResponse:
    """
    계획서 분석.

    순서:
    1. 입력 검증 (PDF 없음 또는 파일이 아닌 pdf 필드, 답변 JSON, 미응답) → 400
    2. 분석기 구성 확인 → 500 (호출 없음)
    3. 분석 1회 (업로드 → 분석 → 업로드 삭제)
    4. 성공 시에만 세션에 validationResult 저장

    Returns:
        {userAnswers, aiAnswers} 또는 {error, errorType?}
    """
    session_id, is_new = resolve_session_id(request)
    config = getattr(request.app.state, "config", {}) or {}

    try:
        if pdf is None or isinstance(pdf, str):
            raise InvalidInputError("No PDF file provided", field="pdf")

        service = AnalysisService(config)
        user_answers = parse_user_answers_json(userAnswers, len(service.questions))

        file_bytes = validate_document(
            await pdf.read(),
            content_type=pdf.content_type,
            filename=pdf.filename,
        )

        result = await service.validate(
            file_bytes,
            pdf.filename or "plan.pdf",
            user_answers,
        )

    except PlanValidationError as e:
        logger.warning(f"Validation request failed: {e.to_dict()}")
        response = error_response(e)

    except Exception as e:
        logger.exception(f"Unexpected error during validation: {e}")
        response = JSONResponse(status_code=500, content={"error": str(e)})

    else:
        get_submission_flow(request, session_id).begin_reconciliation(result)
        response = JSONResponse(content=result.to_dict())

    if is_new:
        attach_session_cookie(request, response, session_id)
    return response

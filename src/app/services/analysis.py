"""
Analysis Service: PDF + 사용자 답변 → ValidationResult.

규칙:
- 입력 검증(PDF 여부, 답변 완전성)은 네트워크 호출 전에 끝냄
- 분석 호출은 제출당 1회, 재시도 없음, ai.analysis_timeout으로 제한
- Provider 에러는 여기서 도메인 에러 분류로 변환 (경계)
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

from src.app.providers.anthropic import ClaudeDocumentAnalyzer
from src.app.providers.base import (
    AnalysisCallError,
    DocumentAnalyzer,
    ProviderError,
    ProviderNotConfiguredError,
    ResponseParseError,
    UploadError,
)
from src.app.providers.openai import OpenAIDocumentAnalyzer
from src.domain.constants import (
    DEFAULT_ANALYSIS_TIMEOUT,
    DEFAULT_ANALYZER_PROVIDER,
    GENERIC_MIME_TYPES,
    PDF_MAGIC_BYTES,
    PDF_MIME_TYPE,
)
from src.domain.errors import (
    AnalysisFailedError,
    InvalidInputError,
    MalformedResponseError,
    NotConfiguredError,
    PlanValidationError,
    QuotaExceededError,
    UploadFailedError,
)
from src.domain.schemas import (
    QUESTION_CATALOG,
    Answer,
    Question,
    ValidationResult,
    parse_user_answers,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Analyzer Factory
# =============================================================================


def create_analyzer(config: dict[str, Any]) -> DocumentAnalyzer:
    """
    config 기반 Analyzer 생성.

    config["ai"]["analyzer"] = {"provider": "openai" | "anthropic", "model": ...}

    Raises:
        NotConfiguredError: 자격 증명 누락 또는 알 수 없는 provider
    """
    ai_config = config.get("ai", {}) or {}
    analyzer_config = ai_config.get("analyzer", {}) or {}
    provider = str(analyzer_config.get("provider", DEFAULT_ANALYZER_PROVIDER)).lower()
    model = analyzer_config.get("model")
    request_timeout = analyzer_config.get("request_timeout")

    try:
        if provider == "openai":
            return OpenAIDocumentAnalyzer(
                model=model or "gpt-4o",
                timeout=request_timeout,
            )
        if provider == "anthropic":
            return ClaudeDocumentAnalyzer(
                model=model or "claude-opus-4-5-20251101",
                max_tokens=analyzer_config.get("max_tokens", 4096),
                timeout=request_timeout,
            )
    except ProviderNotConfiguredError as e:
        logger.error(f"Analyzer not configured: {e}")
        raise NotConfiguredError(provider=provider) from e

    logger.error(f"Unknown analyzer provider: {provider!r}")
    raise NotConfiguredError(provider=provider)


# =============================================================================
# Input Validation
# =============================================================================


def validate_document(
    file_bytes: bytes | None,
    content_type: str | None = None,
    filename: str | None = None,
) -> bytes:
    """
    업로드 문서가 PDF인지 확인.

    - 파일 없음/빈 파일 → InvalidInput
    - content-type이 명시됐는데 application/pdf가 아님 → InvalidInput
    - %PDF- 매직 바이트 없음 → InvalidInput

    Returns:
        검증된 파일 바이트
    """
    if not file_bytes:
        raise InvalidInputError("No PDF file provided", field="pdf")

    normalized_type = (content_type or "").split(";")[0].strip().lower()
    if normalized_type not in GENERIC_MIME_TYPES and normalized_type != PDF_MIME_TYPE:
        raise InvalidInputError(
            "Please select a valid PDF file",
            field="pdf",
            content_type=normalized_type,
            filename=filename,
        )

    if not file_bytes.lstrip()[:1024].startswith(PDF_MAGIC_BYTES):
        raise InvalidInputError(
            "Please select a valid PDF file",
            field="pdf",
            filename=filename,
        )

    return file_bytes


def parse_user_answers_json(
    raw: str | None,
    question_count: int = len(QUESTION_CATALOG),
) -> dict[int, Answer]:
    """
    userAnswers 폼 필드(JSON 문자열) 파싱.

    Raises:
        InvalidInputError: 누락, JSON 오류, 미응답 질문
    """
    if raw is None or not raw.strip():
        raise InvalidInputError("No answers provided", field="userAnswers")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidInputError(
            "Answers must be valid JSON", field="userAnswers"
        ) from e

    try:
        return parse_user_answers(data, question_count)
    except ValueError as e:
        raise InvalidInputError(
            "Please answer all questions", field="userAnswers", detail=str(e)
        ) from e


# =============================================================================
# Service
# =============================================================================


class AnalysisService:
    """
    분석 서비스.

    업로드 문서 + 사용자 답변을 분석기에 보내고 ValidationResult 생성.
    """

    def __init__(
        self,
        config: dict[str, Any],
        analyzer: DocumentAnalyzer | None = None,
        questions: Sequence[Question] = QUESTION_CATALOG,
    ):
        """
        Args:
            config: 설정 (ai.analyzer, ai.analysis_timeout 포함)
            analyzer: Document Analyzer (None이면 config 기반 생성)
            questions: 질문 카탈로그

        Raises:
            NotConfiguredError: 분석기 자격 증명 누락 (fail-fast)
        """
        self.config = config
        self.questions = tuple(questions)
        self.analyzer = analyzer if analyzer is not None else create_analyzer(config)

    @property
    def timeout(self) -> float:
        ai_config = self.config.get("ai", {}) or {}
        return float(ai_config.get("analysis_timeout", DEFAULT_ANALYSIS_TIMEOUT))

    async def validate(
        self,
        file_bytes: bytes,
        filename: str,
        user_answers: dict[int, Answer],
    ) -> ValidationResult:
        """
        문서 분석 후 ValidationResult 생성.

        Args:
            file_bytes: 검증된 PDF 바이트
            filename: 원본 파일명
            user_answers: 완전한 사용자 답변

        Returns:
            ValidationResult

        Raises:
            QuotaExceededError, UploadFailedError, AnalysisFailedError,
            MalformedResponseError
        """
        try:
            result = await self.analyzer.analyze(
                file_bytes,
                filename,
                self.questions,
                timeout=self.timeout,
            )
        except TimeoutError as e:
            logger.error(f"Analyzer call timed out after {self.timeout}s")
            raise AnalysisFailedError(
                "Analysis timed out. Please try again.",
                timeout=self.timeout,
            ) from e
        except ProviderError as e:
            raise self._translate(e) from e

        logger.info(
            f"Analysis completed: provider={result.provider} model={result.model_used} "
            f"request_id={result.request_id} answers={len(result.answers)}/{len(self.questions)}"
        )
        logger.debug(f"Analysis result: {result.to_dict()}")

        return ValidationResult(
            user_answers=dict(user_answers),
            ai_answers=dict(result.answers),
        )

    def _translate(self, error: ProviderError) -> PlanValidationError:
        """Provider 에러 → 도메인 에러."""
        logger.error(f"Analyzer failed: {error}")

        if error.quota_exceeded:
            return QuotaExceededError(provider_code=error.code)
        if isinstance(error, UploadError):
            return UploadFailedError(error.message, provider_code=error.code)
        if isinstance(error, AnalysisCallError):
            return AnalysisFailedError(error.message, provider_code=error.code)
        if isinstance(error, ResponseParseError):
            return MalformedResponseError(provider_code=error.code)
        return AnalysisFailedError(provider_code=error.code)

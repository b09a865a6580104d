"""
Error definitions for plan validation.

규칙:
- 조용한 실패 금지 → 도메인 에러로 명시적 실패
- 외부 분석 서비스 에러는 경계(AnalysisService)에서 이 분류로 변환
- 각 에러는 HTTP status + 응답용 errorType을 함께 가짐
"""

from typing import Any

# =============================================================================
# Error Codes
# =============================================================================


class ErrorCodes:
    """에러 코드 상수."""

    # === Intake ===
    INVALID_INPUT = "INVALID_INPUT"

    # === Analyzer ===
    NOT_CONFIGURED = "NOT_CONFIGURED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    ANALYSIS_FAILED = "ANALYSIS_FAILED"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"

    # === Reconciliation / Flow ===
    MISSING_PRECONDITION = "MISSING_PRECONDITION"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    SUBMISSION_BLOCKED = "SUBMISSION_BLOCKED"


class ErrorTypes:
    """응답 JSON의 errorType 값 (클라이언트가 분기에 사용)."""

    QUOTA_EXCEEDED = "quota_exceeded"
    UPLOAD_ERROR = "upload_error"
    API_ERROR = "api_error"
    PARSE_ERROR = "parse_error"
    MISSING_PRECONDITION = "missing_precondition"


# =============================================================================
# Exceptions
# =============================================================================


class PlanValidationError(Exception):
    """
    애플리케이션 도메인 에러 베이스.

    Usage:
        raise InvalidInputError("No PDF file provided", field="pdf")
    """

    code: str = "ERROR"
    http_status: int = 500
    error_type: str | None = None
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        if ctx_str:
            return f"[{self.code}] {self.message} ({ctx_str})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }

    def to_response(self) -> dict[str, str]:
        """API 에러 응답 body."""
        body = {"error": self.message}
        if self.error_type:
            body["errorType"] = self.error_type
        return body


class InvalidInputError(PlanValidationError):
    """문서/답변 누락 또는 형식 오류."""

    code = ErrorCodes.INVALID_INPUT
    http_status = 400
    default_message = "Invalid input"


class NotConfiguredError(PlanValidationError):
    """분석 서비스 자격 증명 미설정 (호출 전 fail-fast)."""

    code = ErrorCodes.NOT_CONFIGURED
    http_status = 500
    default_message = "Service not properly configured. Please contact support."


class QuotaExceededError(PlanValidationError):
    """분석 서비스 쿼터 초과. UI에서 더 오래, 더 눈에 띄게 표시."""

    code = ErrorCodes.QUOTA_EXCEEDED
    http_status = 429
    error_type = ErrorTypes.QUOTA_EXCEEDED
    default_message = (
        "Service quota exceeded. Please try again later or contact support."
    )


class UploadFailedError(PlanValidationError):
    """문서 업로드 실패."""

    code = ErrorCodes.UPLOAD_FAILED
    http_status = 500
    error_type = ErrorTypes.UPLOAD_ERROR
    default_message = "Failed to upload file. Please try again."


class AnalysisFailedError(PlanValidationError):
    """분석 호출 실패 (타임아웃 포함)."""

    code = ErrorCodes.ANALYSIS_FAILED
    http_status = 500
    error_type = ErrorTypes.API_ERROR
    default_message = "Failed to analyze PDF. Please try again."


class MalformedResponseError(PlanValidationError):
    """분석 응답에서 기대한 JSON을 찾지 못함."""

    code = ErrorCodes.MALFORMED_RESPONSE
    http_status = 500
    error_type = ErrorTypes.PARSE_ERROR
    default_message = "Failed to parse AI response. Please try again."


class MissingPreconditionError(PlanValidationError):
    """
    이전 단계 결과 없이 다음 단계 진입.

    에러 다이얼로그가 아니라 1단계(intake)로 redirect.
    """

    code = ErrorCodes.MISSING_PRECONDITION
    http_status = 409
    error_type = ErrorTypes.MISSING_PRECONDITION
    default_message = "No validation in progress. Please start a new submission."


class IllegalTransitionError(PlanValidationError):
    """허용되지 않은 질문 상태 전이 (예: match → confirmed)."""

    code = ErrorCodes.ILLEGAL_TRANSITION
    http_status = 409
    default_message = "This answer cannot be changed."


class SubmissionBlockedError(PlanValidationError):
    """해결되지 않은 mismatch가 남아 있는 상태에서 제출 시도."""

    code = ErrorCodes.SUBMISSION_BLOCKED
    http_status = 409
    default_message = "Please review all questions with mismatches before submitting"

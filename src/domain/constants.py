"""
Domain Constants: 애플리케이션 전역 상수.

질문 카탈로그, 세션 키, 업로드 정책 등 시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Question Catalog (질문 카탈로그)
# =============================================================================
# 순서가 곧 질문 인덱스 (0-based). 순서 변경 = 기존 세션 데이터 의미 변경.

QUESTION_TEXTS: tuple[str, ...] = (
    "Are there structural changes?",
    "Does this permit includes the work for an ADU?",
    "Does the Work involves creating a second kitchen?",
    "Does the Work includes relocation or alteration of a bearing wall?",
    "Is there Relocation or addition of a structural beam, column, or footing?",
    "Is there an an increase in structural load on walls, beams or footings?",
    "Does the work involve creating a new or widening an existing opening in an exterior wall?",
    "Does the work does not involve adding any new heated space?",
)

# =============================================================================
# Session Storage Keys (세션 저장소 키)
# =============================================================================
# 브라우저 sessionStorage 키와 동일한 이름 유지

SESSION_VALIDATION_RESULT_KEY = "validationResult"
SESSION_QUESTION_STATES_KEY = "questionStates"
SESSION_FINAL_ANSWERS_KEY = "finalAnswers"

DEFAULT_SESSION_COOKIE_NAME = "plan_session"
DEFAULT_SESSION_TTL_SECONDS = 3600

# =============================================================================
# Upload Policy (업로드 정책)
# =============================================================================

PDF_MIME_TYPE = "application/pdf"
PDF_MAGIC_BYTES = b"%PDF-"

# 일부 클라이언트는 content-type 없이 보냄 → 매직 바이트로 판정
GENERIC_MIME_TYPES = frozenset({"", "application/octet-stream"})

# =============================================================================
# Analyzer Defaults
# =============================================================================

DEFAULT_ANALYZER_PROVIDER = "openai"
DEFAULT_ANALYSIS_TIMEOUT = 60.0

# reasoning 길이 가이드 (프롬프트 품질 계약, 코드로 강제하지 않음)
REASONING_MIN_CHARS = 300
REASONING_MAX_CHARS = 500

# =============================================================================
# UI Notification Durations (ms)
# =============================================================================

ERROR_TOAST_DURATION_MS = 5000
QUOTA_TOAST_DURATION_MS = 8000

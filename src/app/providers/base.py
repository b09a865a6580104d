"""
Document Analyzer 추상 인터페이스.

규칙:
- Provider 추상화로 분석 서비스 교체 가능 (openai / anthropic)
- 업로드된 문서(artifact)는 성공/파싱 실패/호출 실패/취소 모든 경로에서 삭제 시도
- 삭제 실패는 로그만 남기고 상위로 올리지 않음
- 시간 제한은 업로드 + 분석 호출에만 적용 (삭제는 제한 밖, 취소에도 완료)
- 자동 재시도 없음: 제출 1회당 분석 호출 최대 1회
"""

import asyncio
import hashlib
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.domain.constants import REASONING_MAX_CHARS, REASONING_MIN_CHARS
from src.domain.schemas import AIAnswer, Question, parse_ai_answers

logger = logging.getLogger(__name__)

# 로그에 남길 응답 원문 최대 길이
MAX_RAW_LOG_CHARS = 2000


def compute_hash(content: str | bytes) -> str:
    """SHA-256 해시 계산."""
    data = content.encode() if isinstance(content, str) else content
    return f"sha256:{hashlib.sha256(data).hexdigest()[:16]}"


# =============================================================================
# Prompt
# =============================================================================

PROMPT_TEMPLATE = """I want you to read through the attached architectural plan, and provide me yes or no answers to the following questions. For each answer, provide a detailed reasoning ({min_chars}-{max_chars} characters) that includes specific references to the plan and technical details supporting your answer.

Questions:
{questions}

Please respond ONLY with valid JSON in the following format (use question numbers as keys):
{{
  "0": {{"answer": "yes", "reasoning": "detailed explanation with specific references"}},
  "1": {{"answer": "no", "reasoning": "detailed explanation with specific references"}},
  "2": {{"answer": "yes", "reasoning": "detailed explanation with specific references"}}
}}

IMPORTANT:
- Use numbers 0-{last_index} as keys, matching the question numbers above
- Each reasoning should be {min_chars}-{max_chars} characters long
- Include specific details from the plan to support your answer"""


def build_prompt(questions: Sequence[Question]) -> str:
    """질문 카탈로그로 분석 프롬프트 구성."""
    return PROMPT_TEMPLATE.format(
        questions="\n".join(f"{q.index}. {q.text}" for q in questions),
        last_index=max(len(questions) - 1, 0),
        min_chars=REASONING_MIN_CHARS,
        max_chars=REASONING_MAX_CHARS,
    )


# =============================================================================
# Response Parsing
# =============================================================================


def extract_json_object(text: str) -> dict[str, Any]:
    """
    자유 텍스트에서 첫 번째 JSON 객체 추출.

    ```json 블록, 앞뒤 설명 문장 허용.

    Raises:
        ResponseParseError: JSON 객체를 찾지 못함
    """
    decoder = json.JSONDecoder()
    position = text.find("{")
    while position != -1:
        try:
            data, _ = decoder.raw_decode(text, position)
        except json.JSONDecodeError:
            position = text.find("{", position + 1)
            continue
        if isinstance(data, dict):
            return data
        position = text.find("{", position + 1)

    raise ResponseParseError(
        "NO_JSON_FOUND",
        "No valid JSON found in response",
    )


def parse_analysis_reply(text: str, question_count: int) -> dict[int, AIAnswer]:
    """
    분석 응답 텍스트 → 질문별 AIAnswer.

    일부 질문 누락은 허용 (해당 질문 = 제안 없음).
    유효한 질문 항목이 하나도 없으면 파싱 실패.

    Raises:
        ResponseParseError
    """
    data = extract_json_object(text)
    answers = parse_ai_answers(data, question_count)
    if not answers:
        raise ResponseParseError(
            "NO_ANSWERS_FOUND",
            "Response JSON contains no question answers",
            keys=list(data.keys())[:10],
        )
    return answers


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass
class AnalyzerReply:
    """분석 호출 원 응답."""

    text: str
    model_used: str | None = None
    request_id: str | None = None


@dataclass
class AnalysisResult:
    """
    문서 분석 결과.

    필수 메타데이터:
    - provider: 사용된 제공자 (openai, anthropic)
    - model_requested / model_used
    - request_id: API 요청 ID (가능한 경우)
    - prompt_hash / document_hash: 로그 검색용
    """

    answers: dict[int, AIAnswer] = field(default_factory=dict)

    provider: str | None = None
    model_requested: str | None = None
    model_used: str | None = None
    request_id: str | None = None

    prompt_hash: str | None = None
    document_hash: str | None = None
    raw_output_hash: str | None = None

    analyzed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "answers": {str(i): a.to_dict() for i, a in sorted(self.answers.items())},
            "provider": self.provider,
            "model_requested": self.model_requested,
            "model_used": self.model_used,
            "request_id": self.request_id,
            "prompt_hash": self.prompt_hash,
            "document_hash": self.document_hash,
            "raw_output_hash": self.raw_output_hash,
            "analyzed_at": self.analyzed_at,
        }
        return {k: v for k, v in result.items() if v is not None}


# =============================================================================
# Provider Exceptions
# =============================================================================


class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(
        self,
        code: str,
        message: str,
        quota_exceeded: bool = False,
        **context: Any,
    ) -> None:
        self.code = code
        self.message = message
        self.quota_exceeded = quota_exceeded
        self.context = context
        super().__init__(f"[{code}] {message}")


class ProviderNotConfiguredError(ProviderError):
    """API 키 등 필수 설정 누락."""
    pass


class UploadError(ProviderError):
    """문서 업로드 실패."""
    pass


class AnalysisCallError(ProviderError):
    """분석 API 호출 실패."""
    pass


class ResponseParseError(ProviderError):
    """응답 파싱 실패."""
    pass


def is_quota_error(error: BaseException) -> bool:
    """
    쿼터/레이트리밋 에러 여부.

    HTTP 429 또는 code == "insufficient_quota"
    """
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    return status == 429 or getattr(error, "code", None) == "insufficient_quota"


def error_message(error: BaseException, default: str) -> str:
    """SDK 에러에서 사용자 표시용 메시지 추출 (없으면 기본값)."""
    message = getattr(error, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    return default


# =============================================================================
# Abstract Analyzer
# =============================================================================


class DocumentAnalyzer(ABC):
    """
    Document Analyzer 추상 인터페이스.

    역할: 문서 + 질문 카탈로그 → 질문별 yes/no 답변 + reasoning
    (판정 권한 없음, 최종 답변은 사용자가 reconciliation에서 결정)

    구현체는 upload/request/delete 세 가지 API 호출만 제공.
    artifact 수명 관리와 응답 파싱은 analyze()가 담당.
    """

    provider_name: str = "unknown"
    model: str = ""

    @abstractmethod
    async def upload_document(self, file_bytes: bytes, filename: str) -> str:
        """
        문서 업로드.

        Returns:
            업로드된 artifact ID

        Raises:
            UploadError
        """
        ...

    @abstractmethod
    async def request_analysis(self, artifact_id: str, prompt: str) -> AnalyzerReply:
        """
        업로드된 문서에 대해 분석 요청.

        Raises:
            AnalysisCallError
        """
        ...

    @abstractmethod
    async def delete_document(self, artifact_id: str) -> None:
        """업로드된 문서 삭제."""
        ...

    @asynccontextmanager
    async def uploaded_document(
        self,
        file_bytes: bytes,
        filename: str,
        deadline: float | None = None,
    ) -> AsyncIterator[str]:
        """
        업로드된 artifact 스코프.

        업로드 실패 시 삭제할 것이 없음. 업로드 성공 후에는
        정상 종료/예외/취소 어느 경로든 삭제 시도.

        Args:
            deadline: 업로드 제한 시각 (event loop 시간, None이면 제한 없음)
        """
        async with asyncio.timeout_at(deadline):
            artifact_id = await self.upload_document(file_bytes, filename)
        logger.info(f"Uploaded document {filename!r} as {artifact_id} ({self.provider_name})")
        try:
            yield artifact_id
        finally:
            await self._release(artifact_id)

    async def _release(self, artifact_id: str) -> None:
        """best-effort 삭제. 실패는 로그만, 호출자 취소와 무관하게 완료."""
        try:
            await asyncio.shield(self.delete_document(artifact_id))
            logger.info(f"Deleted uploaded document {artifact_id}")
        except Exception as e:
            logger.error(f"Error deleting uploaded document {artifact_id}: {e}")

    async def analyze(
        self,
        file_bytes: bytes,
        filename: str,
        questions: Sequence[Question],
        timeout: float | None = None,
    ) -> AnalysisResult:
        """
        문서 분석 (업로드 → 분석 → 파싱 → 삭제).

        Args:
            timeout: 업로드 + 분석 호출 합산 제한 (초). 삭제는 포함하지 않음.

        Raises:
            UploadError, AnalysisCallError, ResponseParseError
            TimeoutError: 제한 시간 초과 (업로드된 문서는 삭제됨)
        """
        prompt = build_prompt(questions)
        now = datetime.now(UTC).isoformat()
        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout

        async with self.uploaded_document(file_bytes, filename, deadline) as artifact_id:
            async with asyncio.timeout_at(deadline):
                reply = await self.request_analysis(artifact_id, prompt)
            try:
                answers = parse_analysis_reply(reply.text, len(questions))
            except ResponseParseError:
                logger.error(
                    f"Error parsing analyzer response "
                    f"(request_id={reply.request_id}): {reply.text[:MAX_RAW_LOG_CHARS]!r}"
                )
                raise

        missing = [q.index for q in questions if q.index not in answers]
        if missing:
            logger.warning(f"Analyzer response missing questions {missing}")

        return AnalysisResult(
            answers=answers,
            provider=self.provider_name,
            model_requested=self.model,
            model_used=reply.model_used or self.model,
            request_id=reply.request_id,
            prompt_hash=compute_hash(prompt),
            document_hash=compute_hash(file_bytes),
            raw_output_hash=compute_hash(reply.text),
            analyzed_at=now,
        )

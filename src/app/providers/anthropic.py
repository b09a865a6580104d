"""
Anthropic (Claude) Document Analyzer.

Files API(beta)로 PDF 업로드 → Messages API document 블록으로 분석 → 삭제.
"""

import logging
import os
from typing import Any

import anthropic

from src.domain.constants import PDF_MIME_TYPE

from .base import (
    AnalysisCallError,
    AnalyzerReply,
    DocumentAnalyzer,
    ProviderNotConfiguredError,
    UploadError,
    error_message,
    is_quota_error,
)

logger = logging.getLogger(__name__)


class ClaudeDocumentAnalyzer(DocumentAnalyzer):
    """
    Claude API 기반 분석기.

    Usage:
        analyzer = ClaudeDocumentAnalyzer(model="claude-opus-4-5-20251101")
        result = await analyzer.analyze(pdf_bytes, "plan.pdf", QUESTION_CATALOG)
    """

    provider_name = "anthropic"

    FILES_API_BETA = "files-api-2025-04-14"

    def __init__(
        self,
        model: str = "claude-opus-4-5-20251101",
        api_key: str | None = None,
        max_tokens: int = 4096,
        timeout: float | None = None,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 MY_ANTHROPIC_KEY 또는 ANTHROPIC_API_KEY 사용 가능)
            max_tokens: 최대 토큰 수
            timeout: HTTP 요청 타임아웃 (초)

        Raises:
            ProviderNotConfiguredError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        # API 키 결정: 인자 > MY_ANTHROPIC_KEY > ANTHROPIC_API_KEY
        self.api_key = (
            api_key
            or os.environ.get("MY_ANTHROPIC_KEY")
            or os.environ.get("ANTHROPIC_API_KEY")
        )

        if not self.api_key:
            raise ProviderNotConfiguredError(
                "ANTHROPIC_KEY_MISSING",
                "Anthropic API key is missing. "
                "Set MY_ANTHROPIC_KEY or ANTHROPIC_API_KEY.",
            )

        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client: Any = None

    def _get_client(self) -> Any:
        """Anthropic 클라이언트 (lazy init)."""
        if self._client is None:
            kwargs: dict[str, Any] = {"api_key": self.api_key}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            self._client = anthropic.AsyncAnthropic(**kwargs)
        return self._client

    async def upload_document(self, file_bytes: bytes, filename: str) -> str:
        client = self._get_client()
        try:
            uploaded = await client.beta.files.upload(
                file=(filename, file_bytes, PDF_MIME_TYPE),
                betas=[self.FILES_API_BETA],
            )
        except Exception as e:
            logger.error(f"Error uploading file: {e}")
            raise UploadError(
                "UPLOAD_FAILED",
                error_message(e, "Failed to upload file. Please try again."),
                quota_exceeded=is_quota_error(e),
            ) from e
        return str(uploaded.id)

    async def request_analysis(self, artifact_id: str, prompt: str) -> AnalyzerReply:
        client = self._get_client()
        try:
            response = await client.beta.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "document",
                                "source": {"type": "file", "file_id": artifact_id},
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
                betas=[self.FILES_API_BETA],
            )
        except Exception as e:
            logger.error(f"Error calling Claude API: {e}")
            raise AnalysisCallError(
                "ANALYSIS_FAILED",
                error_message(e, "Failed to analyze PDF. Please try again."),
                quota_exceeded=is_quota_error(e),
                model=self.model,
            ) from e

        # text 블록만 이어붙임 (tool_use 등 무시)
        text = "".join(
            block.text
            for block in getattr(response, "content", None) or []
            if getattr(block, "type", None) == "text"
        )
        return AnalyzerReply(
            text=text,
            model_used=getattr(response, "model", None),
            request_id=getattr(response, "id", None),
        )

    async def delete_document(self, artifact_id: str) -> None:
        client = self._get_client()
        await client.beta.files.delete(artifact_id, betas=[self.FILES_API_BETA])

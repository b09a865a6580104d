"""
OpenAI Document Analyzer.

Files API로 PDF 업로드 → Responses API로 분석 → 업로드 파일 삭제.
"""

import logging
import os
from typing import Any

import openai

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


class OpenAIDocumentAnalyzer(DocumentAnalyzer):
    """
    OpenAI Responses API 기반 분석기.

    Usage:
        analyzer = OpenAIDocumentAnalyzer(model="gpt-4o")
        result = await analyzer.analyze(pdf_bytes, "plan.pdf", QUESTION_CATALOG)
    """

    provider_name = "openai"

    # Files API purpose (input_file로 참조 가능한 용도)
    FILE_PURPOSE = "user_data"

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 OPENAI_API_KEY 사용 가능)
            timeout: HTTP 요청 타임아웃 (초)

        Raises:
            ProviderNotConfiguredError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")

        if not self.api_key:
            raise ProviderNotConfiguredError(
                "OPENAI_KEY_MISSING",
                "OpenAI API key is missing. Set the OPENAI_API_KEY environment variable.",
            )

        self.timeout = timeout
        self._client: Any = None

    def _get_client(self) -> Any:
        """OpenAI 클라이언트 (lazy init)."""
        if self._client is None:
            kwargs: dict[str, Any] = {"api_key": self.api_key}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            self._client = openai.AsyncOpenAI(**kwargs)
        return self._client

    async def upload_document(self, file_bytes: bytes, filename: str) -> str:
        client = self._get_client()
        try:
            uploaded = await client.files.create(
                file=(filename, file_bytes, PDF_MIME_TYPE),
                purpose=self.FILE_PURPOSE,
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
            response = await client.responses.create(
                model=self.model,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_file", "file_id": artifact_id},
                            {"type": "input_text", "text": prompt},
                        ],
                    }
                ],
            )
        except Exception as e:
            logger.error(f"Error calling OpenAI API: {e}")
            raise AnalysisCallError(
                "ANALYSIS_FAILED",
                error_message(e, "Failed to analyze PDF. Please try again."),
                quota_exceeded=is_quota_error(e),
                model=self.model,
            ) from e

        return AnalyzerReply(
            text=getattr(response, "output_text", None) or "",
            model_used=getattr(response, "model", None),
            request_id=getattr(response, "id", None),
        )

    async def delete_document(self, artifact_id: str) -> None:
        client = self._get_client()
        await client.files.delete(artifact_id)

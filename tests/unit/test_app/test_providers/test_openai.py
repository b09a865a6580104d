"""
test_openai.py - OpenAI Document Analyzer 테스트

Mock 주의사항:
- MagicMock은 접근되지 않은 속성에 자동으로 새 MagicMock을 반환
- response.output_text, response.model, response.id를 명시적으로 설정
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.providers.base import (
    AnalysisCallError,
    ProviderNotConfiguredError,
    ResponseParseError,
    UploadError,
)
from src.app.providers.openai import OpenAIDocumentAnalyzer
from src.domain.schemas import QUESTION_CATALOG, Answer
from tests.factories import MINIMAL_PDF, QUESTION_COUNT, make_reply_json

# =============================================================================
# Mock Factories
# =============================================================================


def make_openai_response(
    text: str,
    model: str = "gpt-4o-2024-08-06",
    request_id: str = "resp_test_default",
) -> MagicMock:
    """Responses API 응답 mock."""
    response = MagicMock()
    response.output_text = text
    response.model = model
    response.id = request_id
    return response


def make_client(reply_text: str = "") -> MagicMock:
    """AsyncOpenAI 클라이언트 mock (files + responses)."""
    client = MagicMock()
    uploaded = MagicMock()
    uploaded.id = "file-abc123"
    client.files.create = AsyncMock(return_value=uploaded)
    client.files.delete = AsyncMock(return_value=None)
    client.responses.create = AsyncMock(return_value=make_openai_response(reply_text))
    return client


class APIStatusError(Exception):
    def __init__(self, message: str, status_code: int, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


@pytest.fixture
def analyzer() -> OpenAIDocumentAnalyzer:
    return OpenAIDocumentAnalyzer(model="gpt-4o", api_key="test-api-key")


# =============================================================================
# 초기화 테스트
# =============================================================================


class TestOpenAIAnalyzerInit:
    """초기화 테스트."""

    def test_init_with_api_key(self):
        analyzer = OpenAIDocumentAnalyzer(api_key="my-api-key")

        assert analyzer.api_key == "my-api-key"
        assert analyzer.model == "gpt-4o"

    def test_init_uses_env_api_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "env-api-key")

        analyzer = OpenAIDocumentAnalyzer()

        assert analyzer.api_key == "env-api-key"

    def test_missing_key_fails_fast(self, monkeypatch):
        """API 키 없으면 생성 시점에 실패 (호출 시도 없음)."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ProviderNotConfiguredError) as exc_info:
            OpenAIDocumentAnalyzer()

        assert exc_info.value.code == "OPENAI_KEY_MISSING"

    def test_client_lazy_init(self, analyzer):
        assert analyzer._client is None


# =============================================================================
# API 호출 테스트
# =============================================================================


class TestOpenAIAnalyze:
    """analyze() 테스트 (mock 클라이언트)."""

    @pytest.mark.asyncio
    async def test_upload_analyze_delete(self, analyzer):
        client = make_client(make_reply_json({i: "yes" for i in range(QUESTION_COUNT)}))
        analyzer._client = client

        result = await analyzer.analyze(MINIMAL_PDF, "plan.pdf", QUESTION_CATALOG)

        upload_kwargs = client.files.create.call_args.kwargs
        assert upload_kwargs["purpose"] == "user_data"
        assert upload_kwargs["file"] == ("plan.pdf", MINIMAL_PDF, "application/pdf")

        request_kwargs = client.responses.create.call_args.kwargs
        assert request_kwargs["model"] == "gpt-4o"
        content = request_kwargs["input"][0]["content"]
        assert content[0] == {"type": "input_file", "file_id": "file-abc123"}
        assert content[1]["type"] == "input_text"

        client.files.delete.assert_awaited_once_with("file-abc123")

        assert result.provider == "openai"
        assert result.model_used == "gpt-4o-2024-08-06"
        assert result.request_id == "resp_test_default"
        assert all(a.suggestion is Answer.YES for a in result.answers.values())

    @pytest.mark.asyncio
    async def test_upload_quota_error(self, analyzer):
        client = make_client()
        client.files.create.side_effect = APIStatusError(
            "You exceeded your current quota", status_code=429, code="insufficient_quota"
        )
        analyzer._client = client

        with pytest.raises(UploadError) as exc_info:
            await analyzer.analyze(MINIMAL_PDF, "plan.pdf", QUESTION_CATALOG)

        assert exc_info.value.quota_exceeded is True
        client.responses.create.assert_not_awaited()
        client.files.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_analysis_quota_error_still_deletes(self, analyzer):
        client = make_client()
        client.responses.create.side_effect = APIStatusError("Rate limited", status_code=429)
        analyzer._client = client

        with pytest.raises(AnalysisCallError) as exc_info:
            await analyzer.analyze(MINIMAL_PDF, "plan.pdf", QUESTION_CATALOG)

        assert exc_info.value.quota_exceeded is True
        client.files.delete.assert_awaited_once_with("file-abc123")

    @pytest.mark.asyncio
    async def test_analysis_error_message_passthrough(self, analyzer):
        client = make_client()
        client.responses.create.side_effect = APIStatusError(
            "The model does not support file inputs", status_code=400
        )
        analyzer._client = client

        with pytest.raises(AnalysisCallError) as exc_info:
            await analyzer.analyze(MINIMAL_PDF, "plan.pdf", QUESTION_CATALOG)

        assert exc_info.value.quota_exceeded is False
        assert exc_info.value.message == "The model does not support file inputs"

    @pytest.mark.asyncio
    async def test_unparseable_reply_still_deletes(self, analyzer):
        client = make_client("Sorry, I cannot help with that.")
        analyzer._client = client

        with pytest.raises(ResponseParseError):
            await analyzer.analyze(MINIMAL_PDF, "plan.pdf", QUESTION_CATALOG)

        client.files.delete.assert_awaited_once_with("file-abc123")

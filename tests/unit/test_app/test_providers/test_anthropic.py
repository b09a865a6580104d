"""
test_anthropic.py - Claude Document Analyzer 테스트

Mock 주의사항:
- MagicMock은 접근되지 않은 속성에 자동으로 새 MagicMock을 반환
- content 블록의 type/text, response.model, response.id를 명시적으로 설정
- make_anthropic_response() factory 사용
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.providers.anthropic import ClaudeDocumentAnalyzer
from src.app.providers.base import AnalysisCallError, ProviderNotConfiguredError
from src.domain.schemas import QUESTION_CATALOG, Answer
from tests.factories import MINIMAL_PDF, make_reply_json

# =============================================================================
# Mock Factories
# =============================================================================


def make_block(block_type: str, text: str = "") -> MagicMock:
    block = MagicMock()
    block.type = block_type
    block.text = text
    return block


def make_anthropic_response(
    text: str,
    model: str = "claude-opus-4-5-20251101",
    request_id: str = "msg_test_default",
) -> MagicMock:
    """
    Anthropic Message 응답 mock.

    Args:
        text: 응답 텍스트 (JSON 문자열)
        model: 사용된 모델 이름
        request_id: API 요청 ID
    """
    response = MagicMock()
    response.content = [make_block("text", text)]
    response.model = model  # 명시적 설정 필수!
    response.id = request_id  # 명시적 설정 필수!
    return response


def make_client(response: MagicMock) -> MagicMock:
    client = MagicMock()
    uploaded = MagicMock()
    uploaded.id = "file_011abc"
    client.beta.files.upload = AsyncMock(return_value=uploaded)
    client.beta.files.delete = AsyncMock(return_value=None)
    client.beta.messages.create = AsyncMock(return_value=response)
    return client


@pytest.fixture
def analyzer() -> ClaudeDocumentAnalyzer:
    return ClaudeDocumentAnalyzer(
        model="claude-opus-4-5-20251101",
        api_key="test-api-key",
        max_tokens=4096,
    )


# =============================================================================
# 초기화 테스트
# =============================================================================


class TestClaudeAnalyzerInit:
    """ClaudeDocumentAnalyzer 초기화 테스트."""

    def test_init_with_defaults(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-api-key")

        analyzer = ClaudeDocumentAnalyzer()

        assert analyzer.model == "claude-opus-4-5-20251101"
        assert analyzer.max_tokens == 4096

    def test_my_anthropic_key_takes_precedence(self, monkeypatch):
        monkeypatch.setenv("MY_ANTHROPIC_KEY", "my-key")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sdk-key")

        analyzer = ClaudeDocumentAnalyzer()

        assert analyzer.api_key == "my-key"

    def test_missing_key_fails_fast(self, monkeypatch):
        monkeypatch.delenv("MY_ANTHROPIC_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with pytest.raises(ProviderNotConfiguredError) as exc_info:
            ClaudeDocumentAnalyzer()

        assert exc_info.value.code == "ANTHROPIC_KEY_MISSING"

    def test_client_lazy_init(self, analyzer):
        assert analyzer._client is None


# =============================================================================
# API 호출 테스트
# =============================================================================


class TestClaudeAnalyze:
    """analyze() 테스트 (mock 클라이언트)."""

    @pytest.mark.asyncio
    async def test_document_block_references_uploaded_file(self, analyzer):
        client = make_client(make_anthropic_response(make_reply_json({0: "no", 1: "yes"})))
        analyzer._client = client

        result = await analyzer.analyze(MINIMAL_PDF, "plan.pdf", QUESTION_CATALOG)

        kwargs = client.beta.messages.create.call_args.kwargs
        assert kwargs["betas"] == ["files-api-2025-04-14"]
        assert kwargs["max_tokens"] == 4096
        content = kwargs["messages"][0]["content"]
        assert content[0] == {
            "type": "document",
            "source": {"type": "file", "file_id": "file_011abc"},
        }

        client.beta.files.delete.assert_awaited_once()
        assert client.beta.files.delete.call_args.args == ("file_011abc",)

        assert result.provider == "anthropic"
        assert result.request_id == "msg_test_default"
        assert result.answers[0].suggestion is Answer.NO

    @pytest.mark.asyncio
    async def test_joins_text_blocks_only(self, analyzer):
        response = make_anthropic_response("")
        response.content = [
            make_block("text", '{"0": {"answer": '),
            make_block("tool_use", "ignored"),
            make_block("text", '"yes", "reasoning": "r"}}'),
        ]
        analyzer._client = make_client(response)

        result = await analyzer.analyze(MINIMAL_PDF, "plan.pdf", QUESTION_CATALOG)

        assert result.answers[0].answer == "yes"

    @pytest.mark.asyncio
    async def test_rate_limit_marks_quota(self, analyzer):
        error = Exception("rate limited")
        error.status_code = 429  # type: ignore[attr-defined]
        client = make_client(make_anthropic_response(""))
        client.beta.messages.create.side_effect = error
        analyzer._client = client

        with pytest.raises(AnalysisCallError) as exc_info:
            await analyzer.analyze(MINIMAL_PDF, "plan.pdf", QUESTION_CATALOG)

        assert exc_info.value.quota_exceeded is True
        client.beta.files.delete.assert_awaited_once()

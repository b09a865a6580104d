"""
test_submission_flow.py - 업로드 → 불일치 해결 → 제출 → 확인 전체 흐름

외부 API만 mock (SDK 클라이언트). 나머지는 실제 구성요소:
- OpenAIDocumentAnalyzer (업로드/분석/삭제)
- AnalysisService, SubmissionFlow, SessionStore
- FastAPI 라우트 + Jinja2 템플릿
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.app.main import app
from src.app.providers.openai import OpenAIDocumentAnalyzer
from src.app.services.session import SessionStore
from tests.factories import MINIMAL_PDF, read_submission_logs, user_answers_form

pytestmark = pytest.mark.integration


def make_sdk_client(reply: dict[str, dict[str, str]]) -> MagicMock:
    sdk_client = MagicMock()
    uploaded = MagicMock()
    uploaded.id = "file-integration"
    sdk_client.files.create = AsyncMock(return_value=uploaded)
    sdk_client.files.delete = AsyncMock(return_value=None)
    response = MagicMock()
    response.output_text = "Here is my analysis:\n" + json.dumps(reply)
    response.model = "gpt-4o-2024-08-06"
    response.id = "resp_integration"
    sdk_client.responses.create = AsyncMock(return_value=response)
    return sdk_client


def analyzer_with(sdk_client: MagicMock) -> OpenAIDocumentAnalyzer:
    analyzer = OpenAIDocumentAnalyzer(api_key="test-key")
    analyzer._client = sdk_client
    return analyzer


@pytest.fixture
def client(test_config):
    with TestClient(app, follow_redirects=False) as client:
        app.state.config = test_config
        app.state.session_store = SessionStore()
        yield client


def upload(client, sdk_client, answers: str):
    with patch(
        "src.app.services.analysis.create_analyzer",
        return_value=analyzer_with(sdk_client),
    ):
        return client.post(
            "/api/validate",
            files={"pdf": ("plan.pdf", MINIMAL_PDF, "application/pdf")},
            data={"userAnswers": answers},
        )


class TestSubmissionFlow:
    """전체 흐름 시나리오."""

    def test_all_match_submits_directly(self, client, tmp_path):
        sdk_client = make_sdk_client(
            {str(i): {"answer": "yes", "reasoning": "Shown on A-101."} for i in range(8)}
        )

        response = upload(client, sdk_client, user_answers_form("yes"))
        assert response.status_code == 200

        state = client.get("/api/reconciliation").json()
        assert state["canSubmit"] is True
        assert all(s["status"] == "match" for s in state["questionStates"].values())

        response = client.post("/results/submit")
        assert response.headers["location"] == "/confirmation"

        final = client.get("/api/confirmation").json()["finalAnswers"]
        assert all(v == {"currentAnswer": "yes", "status": "match"} for v in final.values())

        sdk_client.files.delete.assert_awaited_once_with("file-integration")

        logs = read_submission_logs(tmp_path / "submissions")
        assert len(logs) == 1
        assert logs[0]["mismatches"] == []

    def test_mismatch_resolution_then_new_submission(self, client, tmp_path):
        reply = {str(i): {"answer": "yes", "reasoning": "r"} for i in range(8)}
        reply["2"] = {"answer": "no", "reasoning": "No kitchen shown."}
        del reply["5"]
        sdk_client = make_sdk_client(reply)

        assert upload(client, sdk_client, user_answers_form("yes")).status_code == 200

        state = client.get("/api/reconciliation").json()
        assert state["unresolved"] == [2, 5]
        assert client.post("/results/submit").status_code == 409

        client.post("/results/2/change")
        client.post("/results/5/confirm")

        response = client.post("/results/submit")
        assert response.headers["location"] == "/confirmation"

        final = client.get("/api/confirmation").json()["finalAnswers"]
        assert final["2"] == {"currentAnswer": "no", "status": "changed"}
        assert final["5"] == {"currentAnswer": "yes", "status": "confirmed"}

        submission = read_submission_logs(tmp_path / "submissions")[0]
        assert submission["mismatches"] == [2, 5]
        assert [r["action"] for r in submission["resolutions"]] == ["change", "confirm"]
        assert submission["resolutions"][1]["ai_answer"] is None

        # 다른 계획 제출 → 전부 초기화
        client.post("/confirmation/done")
        assert client.get("/api/confirmation").status_code == 409
        assert client.get("/").status_code == 200

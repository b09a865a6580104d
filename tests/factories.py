"""
테스트 데이터 factory.

fixture 외에 테스트 본문에서 직접 조합할 때 사용.
"""

import json
from pathlib import Path

from src.domain.schemas import QUESTION_CATALOG, AIAnswer, Answer

QUESTION_COUNT = len(QUESTION_CATALOG)

# 최소 PDF (매직 바이트 검사 통과용)
MINIMAL_PDF = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def make_user_answers(value: Answer = Answer.YES, **overrides: Answer) -> dict[int, Answer]:
    """
    사용자 답변 생성.

    make_user_answers(Answer.YES, q2=Answer.NO) → Q2만 no
    """
    answers = {i: value for i in range(QUESTION_COUNT)}
    for key, answer in overrides.items():
        answers[int(key.lstrip("q"))] = answer
    return answers


def make_ai_answers(
    answers: dict[int, str | None],
    reasoning: str = "The plan shows the relevant detail on sheet A-101.",
) -> dict[int, AIAnswer]:
    return {i: AIAnswer(answer=a, reasoning=reasoning) for i, a in answers.items()}


def make_reply_json(answers: dict[int, str]) -> str:
    """분석기 응답 JSON 텍스트."""
    return json.dumps(
        {
            str(i): {"answer": a, "reasoning": f"Reasoning for question {i}."}
            for i, a in answers.items()
        }
    )


def user_answers_form(value: str = "yes", **overrides: str) -> str:
    """userAnswers 폼 필드 JSON."""
    answers = {str(i): value for i in range(QUESTION_COUNT)}
    for key, answer in overrides.items():
        answers[key.lstrip("q")] = answer
    return json.dumps(answers)


def read_submission_logs(logs_dir: Path) -> list[dict]:
    """저장된 submission log 파일 내용 (파일명순)."""
    return [
        json.loads(path.read_text(encoding="utf-8"))
        for path in sorted(logs_dir.glob("submission_*.json"))
    ]

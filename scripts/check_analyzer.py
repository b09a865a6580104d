#!/usr/bin/env python
"""
Document Analyzer 연결 점검 스크립트.

실행:
    python scripts/check_analyzer.py                # 자격 증명/설정만 확인
    python scripts/check_analyzer.py plan.pdf       # 실제 PDF 1건 분석 (과금 발생)
"""

import asyncio
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

# .env 파일 로드
from dotenv import load_dotenv

load_dotenv()

from src.app.main import load_config  # noqa: E402
from src.app.services.analysis import create_analyzer, validate_document  # noqa: E402
from src.domain.errors import PlanValidationError  # noqa: E402
from src.domain.schemas import QUESTION_CATALOG  # noqa: E402


async def check(pdf_path: Path | None) -> bool:
    print("=" * 60)
    print("🧪 Document Analyzer 점검")
    print("=" * 60)

    config = load_config()
    try:
        analyzer = create_analyzer(config)
    except PlanValidationError as e:
        print(f"❌ 분석기 구성 실패: {e}")
        print("   .env 파일에 API 키를 입력하세요.")
        return False

    print(f"✅ provider={analyzer.provider_name} model={analyzer.model}")

    if pdf_path is None:
        print("⏭️ PDF 경로가 없어 분석 호출은 스킵")
        return True

    try:
        file_bytes = validate_document(pdf_path.read_bytes(), filename=pdf_path.name)
        print(f"📤 분석 요청 전송 중: {pdf_path.name}")
        result = await analyzer.analyze(file_bytes, pdf_path.name, QUESTION_CATALOG)
    except Exception as e:
        print(f"❌ 분석 오류: {type(e).__name__}: {e}")
        return False

    print(f"📥 model_used={result.model_used} request_id={result.request_id}")
    for question in QUESTION_CATALOG:
        ai_answer = result.answers.get(question.index)
        answer = ai_answer.answer if ai_answer else "N/A"
        print(f"  Q{question.index}: {answer} - {question.text}")
    return True


def main() -> int:
    pdf_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    passed = asyncio.run(check(pdf_path))
    print("=" * 60)
    print("🎉 점검 통과" if passed else "⚠️ 점검 실패")
    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())

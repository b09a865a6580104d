"""
App layer: UI 서버 (FastAPI + Jinja2).

역할:
- 계획서 업로드 + 체크리스트 답변 입력
- Document Analyzer 호출, 불일치 해결 UI, 최종 확인
- 세션 범위 상태 관리 (services/session.py)

주의: 폴더 구분
- src/app/templates/ → Jinja2 HTML
- src/app/static/ → CSS, JS
"""

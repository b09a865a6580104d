"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload
- 프로덕션: uvicorn src.app.main:app
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

# Routes
from src.app.routes import reconcile, validate
from src.app.services.session import SessionStore
from src.core.logging import configure_logging
from src.domain.constants import DEFAULT_SESSION_TTL_SECONDS

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def resolve_paths(config: dict[str, Any]) -> dict[str, Any]:
    """paths.* 상대 경로 → 프로젝트 루트 기준 절대 경로."""
    paths = config.get("paths", {}) or {}
    for key, value in list(paths.items()):
        if value and not Path(value).is_absolute():
            paths[key] = str(PROJECT_ROOT / value)
    return config


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: .env 로드, 설정 로드, 로깅 설정, 세션 저장소 생성
    (세션은 메모리에만 존재, 만료 세션은 저장소가 새 세션 생성 시 회수)
    """
    # Startup
    load_dotenv()
    app.state.config = resolve_paths(load_config())
    configure_logging(app.state.config)

    session_config = app.state.config.get("session", {}) or {}
    app.state.session_store = SessionStore(
        ttl_seconds=session_config.get("ttl_seconds", DEFAULT_SESSION_TTL_SECONDS),
    )

    yield


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Plan Validation",
    description="건축 계획서 PDF + 체크리스트 답변 → AI 교차 검증",
    version="0.1.0",
    lifespan=lifespan,
)

# Static files (CSS, JS)
static_dir = Path(__file__).parent / "static"
if static_dir.exists():
    app.mount("/static", StaticFiles(directory=static_dir), name="static")


# =============================================================================
# Routes
# =============================================================================

# 페이지 라우트 (HTML)
app.include_router(validate.router, prefix="", tags=["Intake"])
app.include_router(reconcile.router, prefix="", tags=["Reconciliation"])

# API 라우트
app.include_router(validate.api_router, prefix="/api", tags=["Validate API"])
app.include_router(reconcile.api_router, prefix="/api", tags=["Reconciliation API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    """헬스 체크."""
    return "ok"


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )

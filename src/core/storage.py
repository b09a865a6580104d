"""
원자적 파일 쓰기.

규칙:
- 원자적 쓰기: temp → rename + fsync
- fsync 실패 시 경고 남기고 계속 진행
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _fsync_dir(dir_path: Path) -> None:
    """디렉토리 fsync (rename 엔트리 내구성). 지원 안 되는 환경은 경고만."""
    try:
        fd = os.open(dir_path, os.O_RDONLY)
    except OSError as e:
        logger.warning(f"Directory open for fsync failed {dir_path}: {e}")
        return
    try:
        os.fsync(fd)
    except OSError as e:
        logger.warning(f"Directory fsync failed {dir_path}: {e}")
    finally:
        os.close(fd)


def atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """
    원자적 JSON 쓰기.

    동작:
    - 중간 상태 없음: temp → rename
    - 가능한 환경에서 내구성 강화: 파일 fsync + 디렉토리 fsync
    - 실패 시 cleanup: temp 파일 삭제

    Args:
        path: 저장할 파일 경로
        data: JSON 직렬화할 데이터
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as cleanup_error:
                logger.warning(f"Temp file cleanup failed {temp_path}: {cleanup_error}")
        raise

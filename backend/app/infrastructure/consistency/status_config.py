"""
설정값 기반 상태 등급(On Track / Needs Attention / Critical) 기준: 설정 로드 및 검증.
코드 수정 없이 JSON 설정만으로 기준 변경 가능. 잘못된 설정은 기본값(70/40)으로 대체한다.
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from app.infrastructure.consistency.constants import (
    NEEDS_ATTENTION_MIN_PERCENTAGE,
    ON_TRACK_MIN_PERCENTAGE,
)

logger = logging.getLogger(__name__)

# 기본 설정 파일 경로(환경 변수로 override 가능)
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config" / "status_tiers.json"


@dataclass(frozen=True)
class StatusThresholds:
    """percentage >= on_track → On Track, >= needs_attention → Needs Attention, 그 외 Critical."""

    on_track: int = ON_TRACK_MIN_PERCENTAGE
    needs_attention: int = NEEDS_ATTENTION_MIN_PERCENTAGE


DEFAULT_THRESHOLDS = StatusThresholds()


def _get_config_path() -> Path:
    path = os.getenv("STATUS_TIERS_CONFIG_PATH", "")
    if path and os.path.isfile(path):
        return Path(path)
    return _DEFAULT_CONFIG_PATH


def _load_raw_config() -> dict[str, Any]:
    """설정 파일(JSON) 로드. 파일 없거나 깨졌으면 빈 구조 반환."""
    path = _get_config_path()
    if not path.is_file():
        logger.warning("[consistency] status tier config not found at %s", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("[consistency] failed to load status tier config: %s", e)
        return {}
    return raw if isinstance(raw, dict) else {}


def _build_thresholds(raw: dict[str, Any]) -> StatusThresholds:
    """유효성: 정수 변환 가능, 0 <= needs_attention <= on_track <= 100."""
    try:
        on_track = int(raw.get("on_track_min_percentage", ON_TRACK_MIN_PERCENTAGE))
        needs_attention = int(raw.get("needs_attention_min_percentage", NEEDS_ATTENTION_MIN_PERCENTAGE))
    except (TypeError, ValueError):
        logger.warning("[consistency] non-numeric status tier config, using defaults")
        return DEFAULT_THRESHOLDS
    if not 0 <= needs_attention <= on_track <= 100:
        logger.warning(
            "[consistency] invalid status tiers on_track=%s needs_attention=%s, using defaults",
            on_track, needs_attention,
        )
        return DEFAULT_THRESHOLDS
    return StatusThresholds(on_track=on_track, needs_attention=needs_attention)


# 최초 조회 시 1회 빌드(캐시). 설정 변경 시 reload_status_config() 호출
_thresholds_cached: StatusThresholds | None = None


def get_status_thresholds() -> StatusThresholds:
    global _thresholds_cached
    if _thresholds_cached is None:
        _thresholds_cached = _build_thresholds(_load_raw_config())
    return _thresholds_cached


def reload_status_config() -> StatusThresholds:
    """설정 리로드(관리자 변경 반영용)."""
    global _thresholds_cached
    _thresholds_cached = None
    return get_status_thresholds()

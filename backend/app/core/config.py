"""
애플리케이션 설정: 환경 변수(.env 포함) 기반, 로드 시 검증.
DB 연결 문자열, 로그 레벨, 결과 캐시 TTL을 한 곳에서 읽는다.
"""
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수에서 읽은 설정값 (프로세스 단위로 1회 로드). 잘못된 값은 ValidationError."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///./consistency.db")
    log_level: str = Field(default="INFO")
    # 사용자 단위 결과 캐시 유지 시간(초). 0이면 캐시 비활성.
    cache_ttl_seconds: int = Field(
        default=600,
        ge=0,
        validation_alias="CONSISTENCY_CACHE_TTL_SECONDS",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """설정 로드. 테스트에서 환경을 바꾼 경우 get_settings.cache_clear() 호출."""
    return Settings()

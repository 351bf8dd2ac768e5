"""
DB 엔진·세션 팩토리.
서비스/리포지토리는 get_session_factory()로 얻은 팩토리를 `with` 블록으로 사용한다.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # 인메모리 SQLite는 커넥션 하나를 공유해야 테이블이 유지된다
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def configure_database(url: str | None = None) -> sessionmaker:
    """엔진·세션 팩토리를 (재)구성한다. url 미지정 시 DATABASE_URL 사용."""
    global _engine, _session_factory
    target = url or get_settings().database_url
    if _engine is not None:
        _engine.dispose()
    _engine = _build_engine(target)
    _session_factory = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    logger.info("[database] engine configured dialect=%s", _engine.dialect.name)
    return _session_factory


def get_engine() -> Engine:
    if _engine is None:
        configure_database()
    return _engine


def get_session_factory() -> sessionmaker:
    """지연 초기화된 세션 팩토리 반환."""
    if _session_factory is None:
        configure_database()
    return _session_factory


def create_all() -> None:
    """모든 테이블 생성 (개발·테스트용, 운영은 마이그레이션 사용)."""
    # 모델 모듈을 import해야 Base.metadata에 테이블이 등록된다
    from app.domains.challenge import models as _challenge_models  # noqa: F401
    from app.domains.goal import models as _goal_models  # noqa: F401
    from app.infrastructure.consistency import models as _ledger_models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())

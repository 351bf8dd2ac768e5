"""
목표(Goal)·반복 행동(Action) 테이블.
행동 작성 플로우가 생성하며, 일관성 엔진은 읽기만 한다.
"""
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, func

from app.core.database import Base


class Goal(Base):
    """사용자 목표. 소속 행동은 actions.goal_id로 연결된다."""

    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class Action(Base):
    """
    반복 행동(Recurring Action).
    frequency는 자유 문자열로 저장된다(daily, weekdays, weekly, custom ...).
    알 수 없는 값은 엔진에서 daily로 해석한다.
    """

    __tablename__ = "actions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    goal_id = Column(
        Integer,
        ForeignKey("goals.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title = Column(String(255), nullable=False)
    frequency = Column(String(32), nullable=True)
    scheduled_days = Column(JSON, nullable=True)  # ["monday", "wednesday", ...]
    linked_challenge_ids = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

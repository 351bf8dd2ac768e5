"""
완료 기록(Ledger) 테이블.
ActionCompletion: Raw Event (action_id, user_id, completed_at). append-only이며
같은 날 취소(undo)만 완료 토글 플로우가 삭제로 처리한다. 일관성 엔진은 읽기만 한다.
"""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, func

from app.core.database import Base


class ActionCompletion(Base):
    """반복 행동 완료 이벤트 1건."""

    __tablename__ = "action_completions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action_id = Column(
        Integer,
        ForeignKey("actions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_action_completions_action_completed", "action_id", "completed_at"),)

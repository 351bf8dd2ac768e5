"""
챌린지·참가자 테이블.
completion_percentage는 챌린지 서브시스템이 외부에서 계산해 저장한 값이다.
"""
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from app.core.database import Base


class Challenge(Base):
    """다중 사용자 챌린지."""

    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    duration_days = Column(Integer, nullable=False, default=0)
    # 참가자가 활동을 고르지 않았을 때 하루 기대 활동 수
    predetermined_activity_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class ChallengeParticipant(Base):
    """챌린지 참가 기록. status: active | completed | left."""

    __tablename__ = "challenge_participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    challenge_id = Column(
        Integer,
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, nullable=False, index=True)
    joined_at = Column(DateTime, nullable=False)
    selected_activity_count = Column(Integer, nullable=False, default=0)
    completion_percentage = Column(Float, nullable=False, default=0.0)
    status = Column(String(16), nullable=False, default="active", index=True)

    __table_args__ = (UniqueConstraint("challenge_id", "user_id", name="uq_challenge_participant"),)

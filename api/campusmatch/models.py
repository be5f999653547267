from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, String, Text, UniqueConstraint, func
from .database import Base


class UserAccount(Base):
    __tablename__ = "user_account"

    id = Column(String(36), primary_key=True)
    display_name = Column(String, nullable=True)
    birth_date = Column(Date, nullable=True)
    gender = Column(String, nullable=True)
    school = Column(String, nullable=False, default="")
    program = Column(String, nullable=False, default="")
    preference_text = Column(Text, nullable=False, default="")
    bio = Column(Text, nullable=False, default="")
    verification_status = Column(String, nullable=False, default="unverified")
    is_restricted = Column(Boolean, nullable=False, default=False)
    report_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_user_account_gender", "gender"),
        Index("idx_user_account_school", "school"),
    )


class UserBlock(Base):
    __tablename__ = "user_block"

    id = Column(String(36), primary_key=True)
    blocker_id = Column(String(36), nullable=False)
    blocked_id = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_user_block_pair"),
        Index("idx_user_block_blocked_id", "blocked_id"),
    )


class Swipe(Base):
    __tablename__ = "swipe"

    id = Column(String(36), primary_key=True)
    swiper_id = Column(String(36), nullable=False)
    target_id = Column(String(36), nullable=False)
    action = Column(String, nullable=False)
    swiped_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("swiper_id", "target_id", name="uq_swipe_ordered_pair"),
        Index("idx_swipe_target_id", "target_id"),
    )


class UserMatch(Base):
    __tablename__ = "match_record"

    id = Column(String(36), primary_key=True)
    # user_a_id < user_b_id, so one row covers the unordered pair
    user_a_id = Column(String(36), nullable=False)
    user_b_id = Column(String(36), nullable=False)
    matched_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_a_id", "user_b_id", name="uq_match_record_pair"),
        Index("idx_match_record_user_b_id", "user_b_id"),
    )

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, Index, Integer, String, Text, UniqueConstraint, func

from .database import Base


class UserAccount(Base):
    __tablename__ = "user_account"

    id = Column(String(64), primary_key=True)
    display_name = Column(String(80), nullable=True)
    bio = Column(Text, nullable=True)
    photo_url = Column(Text, nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(32), nullable=True)
    is_profile_visible = Column(Boolean, nullable=False, default=True)
    is_onboarding_completed = Column(Boolean, nullable=False, default=False)
    last_latitude = Column(Float, nullable=True)
    last_longitude = Column(Float, nullable=True)
    last_location_update = Column(DateTime(timezone=True), nullable=True)
    min_age = Column(Integer, nullable=True)
    max_age = Column(Integer, nullable=True)
    max_distance = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_user_account_location", "last_latitude", "last_longitude"),
    )


class MatchRecord(Base):
    __tablename__ = "match_record"

    id = Column(String(36), primary_key=True)
    member_low = Column(String(64), nullable=False)
    member_high = Column(String(64), nullable=False)
    action_low = Column(String(16), nullable=True)
    action_high = Column(String(16), nullable=True)
    low_acted_at = Column(DateTime(timezone=True), nullable=True)
    high_acted_at = Column(DateTime(timezone=True), nullable=True)
    is_mutual = Column(Boolean, nullable=False, default=False)
    matched_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("member_low", "member_high", name="uq_match_record_pair"),
        CheckConstraint("member_low < member_high", name="ck_match_record_canonical"),
        Index("idx_match_record_member_high", "member_high"),
    )

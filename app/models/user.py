from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class User(Base):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=True)

    referral_code = Column(String(12), unique=True, index=True, nullable=False) # Shareable code handed out at signup
    referred_by_id = Column(Integer, ForeignKey("user.id"), nullable=True, index=True) # Direct referrer
    referral_count = Column(Integer, default=0, nullable=False) # Direct recruits only

    plan_type = Column(String(20), nullable=True) # "basic" or "premium" once paid
    has_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    # Advisory sum of commissions earned. The wallet ledger is the source of truth.
    total_earnings = Column(Numeric(12, 2), default=0, nullable=False)
    wallet_balance = Column(Numeric(12, 2), default=0, nullable=False)
    wallet_currency = Column(String(3), default="INR", nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    is_superuser = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Self-referential relationship for referrer/referrals
    referrer = relationship("User", remote_side=[id], back_populates="referrals")
    referrals = relationship("User", back_populates="referrer")

    referral_ancestors = relationship(
        "ReferralAncestor",
        foreign_keys="ReferralAncestor.user_id",
        back_populates="user",
        order_by="ReferralAncestor.level",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', referral_code='{self.referral_code}')>"


class ReferralAncestor(Base):
    """
    One entry of a user's referral chain, snapshotted at signup.
    Level 1 is the direct referrer. Rows are never rewritten after creation.
    """
    __tablename__ = "referral_ancestor"
    __table_args__ = (UniqueConstraint("user_id", "level", name="uq_referral_ancestor_user_level"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    ancestor_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    level = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User", foreign_keys=[user_id], back_populates="referral_ancestors")
    ancestor = relationship("User", foreign_keys=[ancestor_id])

    def __repr__(self):
        return f"<ReferralAncestor(user_id={self.user_id}, ancestor_id={self.ancestor_id}, level={self.level})>"

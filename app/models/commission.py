from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base_class import Base

class CommissionDistribution(Base):
    """
    One row per paying user. The unique from_user_id is the storage-level
    guard that makes commission distribution at-most-once.
    """
    __tablename__ = "commission_distribution"

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_user_id = Column(Integer, ForeignKey("user.id"), nullable=False, unique=True, index=True)
    plan_type = Column(String(20), nullable=False)
    plan_amount = Column(Numeric(12, 2), nullable=False)
    total_paid = Column(Numeric(12, 2), nullable=False, default=0)
    company_amount = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    from_user = relationship("User")
    commissions = relationship("Commission", back_populates="distribution", order_by="Commission.level")

    def __repr__(self):
        return f"<CommissionDistribution(id={self.id}, from_user_id={self.from_user_id}, total_paid={self.total_paid})>"


class Commission(Base):
    __tablename__ = "commission"
    __table_args__ = (UniqueConstraint("from_user_id", "level", name="uq_commission_from_user_level"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    distribution_id = Column(Integer, ForeignKey("commission_distribution.id"), nullable=False, index=True)
    from_user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True) # Paying user whose purchase triggered this
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True) # Ancestor who earned this commission

    level = Column(Integer, nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)
    plan_type = Column(String(20), nullable=False)
    plan_amount = Column(Numeric(12, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")

    status = Column(String(20), nullable=False, default="completed", index=True) # pending, completed, failed
    description = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    distribution = relationship("CommissionDistribution", back_populates="commissions")
    earning_user = relationship("User", foreign_keys=[user_id], backref="commissions_earned")
    from_user = relationship("User", foreign_keys=[from_user_id])

    def __repr__(self):
        return f"<Commission(id={self.id}, from_user_id={self.from_user_id}, user_id={self.user_id}, level={self.level}, amount={self.amount})>"

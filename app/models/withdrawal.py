from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base_class import Base

class Withdrawal(Base):
    __tablename__ = "withdrawal"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(20), nullable=False) # bank, upi
    account_details = Column(JSON, nullable=False)
    description = Column(String(255), nullable=False)

    status = Column(String(20), nullable=False, default="pending", index=True) # pending, approved, rejected
    admin_message = Column(Text, nullable=True)
    transaction_id = Column(Integer, ForeignKey("wallet_transaction.id"), nullable=True) # The pending debit

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
    approved_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    processed_at = Column(DateTime, nullable=True)

    user = relationship("User", backref="withdrawals")
    transaction = relationship("WalletTransaction")

    def __repr__(self):
        return f"<Withdrawal(id={self.id}, user_id={self.user_id}, amount={self.amount}, status='{self.status}')>"

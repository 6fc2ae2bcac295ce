from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base_class import Base

COMPANY_WALLET_ID = "company"

class WalletTransaction(Base):
    __tablename__ = "wallet_transaction"
    __table_args__ = (
        Index("ix_wallet_transaction_user_created", "user_id", "created_at"),
        Index("ix_wallet_transaction_type_status", "transaction_type", "status"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=True, index=True) # NULL for the company wallet
    amount = Column(Numeric(12, 2), nullable=False) # Negative = debit, positive = credit
    transaction_type = Column(String(20), nullable=False, index=True) # purchase, commission, withdrawal, deposit
    reference_id = Column(String(64), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True) # pending, completed, failed
    description = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User")

    def __repr__(self):
        return f"<WalletTransaction(id={self.id}, user_id={self.user_id}, type='{self.transaction_type}', amount={self.amount}, status='{self.status}')>"


class CompanyWallet(Base):
    __tablename__ = "company_wallet"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    wallet_id = Column(String(20), unique=True, nullable=False, default=COMPANY_WALLET_ID)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    total_collected = Column(Numeric(14, 2), nullable=False, default=0) # Sum of plan prices
    total_commissions = Column(Numeric(14, 2), nullable=False, default=0) # Sum paid out to ancestors
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<CompanyWallet(wallet_id='{self.wallet_id}', balance={self.balance})>"

# Import all models so Base.metadata knows every table before create_all()
from app.db.base_class import Base
from app.models.user import User, ReferralAncestor
from app.models.commission import Commission, CommissionDistribution
from app.models.wallet import WalletTransaction, CompanyWallet
from app.models.withdrawal import Withdrawal

from .token import Token, TokenData
from .user import (
    UserBase,
    UserCreate,
    User,
    UserWithAncestors,
    ReferralAncestor,
    ReferralSummary
)
from .commission import (
    Commission as CommissionSchema, # Alias to avoid clash with the Commission model
    PaidCommission,
    DistributionResult,
    LevelEarning,
    EarningsPreview,
    PlanInfo,
    CommissionConfig
)
from .wallet import (
    WalletTransaction as WalletTransactionSchema,
    Wallet,
    LevelTotal,
    CompanyWalletSummary,
    Reconciliation
)
from .withdrawal import (
    WithdrawalCreate,
    WithdrawalDecision,
    Withdrawal as WithdrawalSchema
)
from .payment import (
    PaymentCompleteRequest,
    PlanActivationRequest,
    PlanActivationResponse,
    MissingCommissionsRequest,
    MissingCommissionOutcome
)

from .token import TokenData
from .user import (
    UserBase,
    UserCreate,
    UserUpdate,
    UserInDBBase,
    User,
    UserWithReferrals
)
from .product import (
    ProductBase,
    ProductCreate,
    ProductUpdate,
    ProductInDBBase,
    Product
)
from .order import (
    OrderBase,
    OrderCreate,
    OrderCreateInternal,
    OrderUpdate,
    OrderPaidEvent,
    Order
)
from .ledger import (
    LedgerEntryBase,
    LedgerEntryCreate,
    LedgerEntry as LedgerEntrySchema # Alias to avoid clash with the LedgerEntry model
)
from .commission import (
    AncestorEligibility,
    CommissionLine,
    InstallmentPlan,
    CommissionPlan,
    CommissionResult
)
from .payout import SelfPayoutSchedule as SelfPayoutScheduleSchema, PayoutJobResult, RetryJobResult
from .wallet import WalletSummary
from .withdrawal import WithdrawalCreate, WithdrawalReview, Withdrawal as WithdrawalSchema
from .kyc import KycSubmit, KycReview, KycData as KycDataSchema
from .network import HierarchyMember, NetworkStats
from .jobs import (
    JobRun as JobRunSchema,
    PoolDistribution as PoolDistributionSchema,
    PoolDistributionResult,
    WalletMismatch,
    ReconciliationReport,
    TreeHealthReport
)

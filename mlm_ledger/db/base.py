# Import all the models, so that Base has them before being
# imported by create_all / the test suite
from mlm_ledger.db.base_class import Base  # noqa: F401
from mlm_ledger.models.user import User  # noqa: F401
from mlm_ledger.models.product import Product  # noqa: F401
from mlm_ledger.models.order import Order  # noqa: F401
from mlm_ledger.models.ledger import LedgerEntry  # noqa: F401
from mlm_ledger.models.hierarchy import Hierarchy  # noqa: F401
from mlm_ledger.models.payout import SelfPayoutSchedule  # noqa: F401
from mlm_ledger.models.kyc import KycData  # noqa: F401
from mlm_ledger.models.withdrawal import Withdrawal  # noqa: F401
from mlm_ledger.models.pool import TurnoverPool, PoolDistribution  # noqa: F401
from mlm_ledger.models.job import JobRun  # noqa: F401

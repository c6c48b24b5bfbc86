import os
from decimal import Decimal
from typing import Dict
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mlm_ledger.db")
SQLALCHEMY_DATABASE_URI = DATABASE_URL

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# JWT Settings. Tokens are issued by the auth service; this service only verifies them.
SECRET_KEY: str = os.getenv("SECRET_KEY", "a_very_secret_key_that_should_be_in_env_file_and_much_stronger")
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))

# Hierarchy
MAX_HIERARCHY_DEPTH: int = 5

# Order value split. Amounts are integer paisa, every share is floored.
COMPANY_SHARE = Decimal("0.30")
JOINING_SPONSORS_SHARE = Decimal("0.70")  # of the post-company bucket; the rest is self income

DEFAULT_LEVEL_RATES = "0.25,0.20,0.15,0.10,0.10"


def parse_level_rates(raw: str) -> Dict[int, Decimal]:
    """
    Parse a comma-separated rate table ("0.25,0.20,...") into {depth: rate}.
    Raises ValueError for more levels than MAX_HIERARCHY_DEPTH, negative rates
    or a table summing above 1.
    """
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    if len(parts) > MAX_HIERARCHY_DEPTH:
        raise ValueError(f"Level rate table has {len(parts)} levels, max is {MAX_HIERARCHY_DEPTH}")
    rates = {depth: Decimal(value) for depth, value in enumerate(parts, start=1)}
    if any(rate < 0 for rate in rates.values()):
        raise ValueError(f"Level rates must not be negative: {raw}")
    if sum(rates.values(), Decimal("0")) > 1:
        raise ValueError(f"Level rates must not sum above 1: {raw}")
    return rates


JOINING_LEVEL_RATES: Dict[int, Decimal] = parse_level_rates(os.getenv("JOINING_LEVEL_RATES", DEFAULT_LEVEL_RATES))
REPURCHASE_LEVEL_RATES: Dict[int, Decimal] = parse_level_rates(os.getenv("REPURCHASE_LEVEL_RATES", DEFAULT_LEVEL_RATES))

# Self income (joining orders only)
SELF_INCOME_INSTALLMENTS: int = 4
SELF_INCOME_INTERVAL_DAYS: int = 7
MAX_INSTALLMENT_RETRIES: int = 3

# Repurchase 3-3 rule
REPURCHASE_MIN_DIRECTS: int = 3
REPURCHASE_MIN_QUALIFIED_DIRECTS: int = 3

# Turnover pool
POOL_LEVEL_SHARES: Dict[int, Decimal] = {
    1: Decimal("0.30"),
    2: Decimal("0.20"),
    3: Decimal("0.20"),
    4: Decimal("0.15"),
    5: Decimal("0.15"),
}
POOL_LEVEL_TEAM_REQUIREMENTS: Dict[int, int] = {1: 1, 2: 9, 3: 27, 4: 81, 5: 243}
TEAM_SIZE: int = 3

# Referral codes: unambiguous A-Z + 2-9 (no O, 0, I, 1, L)
REFERRAL_CODE_ALPHABET: str = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_LENGTH: int = 8
REFERRAL_CODE_MAX_ATTEMPTS: int = 10

# Withdrawals (paisa)
MIN_WITHDRAWAL_AMOUNT: int = int(os.getenv("MIN_WITHDRAWAL_AMOUNT", 50000))

# Batch jobs
PAYOUT_BATCH_SIZE: int = int(os.getenv("PAYOUT_BATCH_SIZE", 50))
JOB_STALE_AFTER_MINUTES: int = int(os.getenv("JOB_STALE_AFTER_MINUTES", 60))

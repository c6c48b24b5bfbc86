import pytest
from sqlalchemy.orm import Session

from mlm_ledger.core.exceptions import NoPoolsAvailable
from mlm_ledger.core.pool import add_to_turnover_pool, distribute_pools, split_pool_amount
from mlm_ledger.crud import crud_ledger, crud_pool
from mlm_ledger.models.job import JobRun

pytestmark = pytest.mark.core


def _fund_pool(db: Session, amount: int):
    add_to_turnover_pool(db, amount)
    db.commit()


def _at_level(user, level: int, db: Session):
    user.pool_level = level
    db.add(user)
    db.commit()
    return user


def test_split_puts_rounding_on_level_one():
    assert split_pool_amount(9800) == {1: 2940, 2: 1960, 3: 1960, 4: 1470, 5: 1470}
    shares = split_pool_amount(7)
    assert sum(shares.values()) == 7
    assert shares[1] == 7 - sum(shares[level] for level in (2, 3, 4, 5))


def test_contributions_accumulate_in_one_open_pool(db_session: Session):
    _fund_pool(db_session, 9800)
    _fund_pool(db_session, 200)

    pool = crud_pool.get_open_pool(db_session)
    assert pool.total_amount == 10000
    assert sum(pool.level_amount(level) for level in range(1, 6)) == 10000


@pytest.mark.asyncio
async def test_distribution_splits_levels_equally(db_session: Session, make_user):
    _fund_pool(db_session, 10000)  # L1 3000, L2 2000, L3 2000, L4 1500, L5 1500
    l1_users = [_at_level(make_user(active=True), 1, db_session) for _ in range(3)]
    l2_user = _at_level(make_user(active=True), 2, db_session)
    _at_level(make_user(active=False), 3, db_session)  # inactive members are skipped

    result = await distribute_pools(db_session)

    assert result.pools_processed == 1
    assert result.total_amount == 10000
    assert result.users_rewarded == 4
    assert result.unclaimed_amount == 2000 + 1500 + 1500
    assert result.breakdown["L3"] == {"amount": 2000, "users": 0, "unclaimed": 2000}

    for user in l1_users:
        assert crud_ledger.get_user_ledger_balance(db_session, user_id=user.id) == 1000
    assert crud_ledger.get_user_ledger_balance(db_session, user_id=l2_user.id) == 2000
    unclaimed = crud_ledger.get_entry_by_ref(db_session, f"pool:{result.distribution_id}:L4:unclaimed")
    assert unclaimed.type == "pool_unclaimed"
    assert unclaimed.amount == 1500

    assert crud_pool.get_open_pool(db_session) is None
    run = db_session.query(JobRun).filter(JobRun.id == result.job_run_id).first()
    assert run.status == "success"


@pytest.mark.asyncio
async def test_uneven_split_gives_remainder_to_first_member(db_session: Session, make_user):
    _fund_pool(db_session, 1000)  # L1 gets 300
    users = [_at_level(make_user(active=True), 1, db_session) for _ in range(7)]

    await distribute_pools(db_session)

    balances = [crud_ledger.get_user_ledger_balance(db_session, user_id=u.id) for u in users]
    assert balances == [48] + [42] * 6
    db_session.expire_all()
    assert [u.wallet_balance for u in users] == balances


@pytest.mark.asyncio
async def test_nothing_to_distribute(db_session: Session):
    with pytest.raises(NoPoolsAvailable):
        await distribute_pools(db_session)
    run = db_session.query(JobRun).first()
    assert run.status == "failed"


@pytest.mark.asyncio
async def test_members_with_a_zero_share_are_not_counted(db_session: Session, make_user):
    _fund_pool(db_session, 10)  # L1 gets 4 paisa
    users = [_at_level(make_user(active=True), 1, db_session) for _ in range(5)]

    result = await distribute_pools(db_session)

    assert result.users_rewarded == 1
    assert result.breakdown["L1"] == {"amount": 4, "users": 1, "unclaimed": 0}
    assert crud_ledger.get_user_ledger_balance(db_session, user_id=users[0].id) == 4
    assert all(crud_ledger.get_user_ledger_balance(db_session, user_id=u.id) == 0 for u in users[1:])

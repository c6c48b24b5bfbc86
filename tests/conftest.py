import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient
import os
import uuid

# Point the application engine at the test database before anything imports it
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

# Add project root to sys.path to allow imports from mlm_ledger
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


from mlm_ledger.main import app
from mlm_ledger.db.base import Base
from mlm_ledger.db.session import get_db
from mlm_ledger.core.activation import activate_user
from mlm_ledger.core.security import create_access_token
from mlm_ledger.crud import crud_user, crud_product
from mlm_ledger.models.user import User
from mlm_ledger.models.product import Product
from mlm_ledger.schemas.user import UserCreate
from mlm_ledger.schemas.product import ProductCreate

# Use a separate SQLite database for testing
TEST_SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.create_all(bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="session")
def test_engine():
    Base.metadata.create_all(bind=engine)
    yield engine

@pytest.fixture(scope="function")
def db_session(test_engine):
    """
    Provides a database session for each test function.
    Tables are dropped and recreated first so every test starts empty.
    """
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client():
    # The TestClient uses the app with the overridden get_db dependency
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def make_user(db_session: Session):
    """
    Factory: create a member, optionally under a sponsor, optionally activated
    (referral code, hierarchy rows and team counts, as a first paid order would).
    """
    def _make_user(sponsor: User = None, active: bool = False, is_superuser: bool = False, email: str = None) -> User:
        user_in = UserCreate(
            email=email or f"member_{uuid.uuid4().hex[:8]}@example.com",
            full_name="Test Member"
        )
        user = crud_user.create_user(
            db_session, obj_in=user_in, sponsor_id=sponsor.id if sponsor else None, is_superuser=is_superuser
        )
        if active:
            activate_user(db_session, user.id)
            db_session.commit()
            db_session.refresh(user)
        return user
    return _make_user

@pytest.fixture(scope="function")
def make_chain(make_user):
    """Factory: a sponsor chain of active members, root first."""
    def _make_chain(length: int):
        chain = []
        sponsor = None
        for _ in range(length):
            sponsor = make_user(sponsor=sponsor, active=True)
            chain.append(sponsor)
        return chain
    return _make_chain

@pytest.fixture(scope="function")
def test_product(db_session: Session) -> Product:
    product_in = ProductCreate(
        name=f"Starter Kit {uuid.uuid4().hex[:6]}",
        description="Joining kit",
        price=100000, # 1000.00 INR
        mlm_value=100000,
        is_active=True
    )
    return crud_product.create_product(db=db_session, obj_in=product_in)


def token_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}

@pytest.fixture(scope="function")
def normal_user_token_headers(make_user):
    user = make_user()
    return token_headers(user), user

@pytest.fixture(scope="function")
def superuser_token_headers(make_user):
    user = make_user(is_superuser=True, active=True)
    return token_headers(user), user

@pytest.fixture(scope="function")
def auth_headers():
    """Bearer headers for any user object."""
    return token_headers

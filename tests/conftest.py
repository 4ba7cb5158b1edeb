import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
import razorpay
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import bookhaven.models  # noqa: F401
from bookhaven.database import get_session
from bookhaven.dependencies.shopper import get_payment_gateway, get_shopper_sessions
from bookhaven.main import app
from bookhaven.models.user import User
from bookhaven.schemas.catalog_schemas import CatalogItem
from bookhaven.services.payment_service import RazorpayGateway
from bookhaven.services.shopper_sessions import ShopperSessions
from bookhaven.utils.token import create_access_token


class _FakeOrders:
    def __init__(self):
        self.created = []

    def create(self, data):
        order = {"id": f"order_{len(self.created) + 1}", **data}
        self.created.append(order)
        return order


class _FakeUtility:
    def verify_payment_signature(self, params):
        if params["razorpay_signature"] != "valid-signature":
            raise razorpay.errors.SignatureVerificationError("Razorpay Signature Verification Failed")
        return True


class FakeRazorpayClient:
    def __init__(self):
        self.order = _FakeOrders()
        self.utility = _FakeUtility()


class FakeGateway:
    """Payment collaborator that lets a test decide the outcome."""

    def __init__(self):
        self.calls = []
        self._callbacks = None

    def initiate_payment(self, amount, shopper_email, shopper_name, on_success, on_failure):
        self.calls.append({"amount": amount, "email": shopper_email, "name": shopper_name})
        self._callbacks = (on_success, on_failure)
        return {"razorpay_order_id": f"order_{len(self.calls)}"}

    def succeed(self, payment_reference):
        return self._callbacks[0](payment_reference)

    def fail(self, error):
        return self._callbacks[1](error)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def shopper(session):
    user = User(id="shopper-1", email="asha@example.com", full_name="Asha Rao", address="12 MG Road")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def other_shopper(session):
    user = User(id="shopper-2", email="ben@example.com", full_name="Ben Ito")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin(session):
    user = User(id="admin-1", email="admin@example.com", full_name="Admin", role="admin")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def book_a():
    return CatalogItem(
        id="vol-a",
        title="The Left Hand of Darkness",
        authors=["Ursula K. Le Guin"],
        thumbnail="http://books.example/a.jpg",
        price=21,
    )


@pytest.fixture
def book_b():
    return CatalogItem(id="vol-b", title="Dune", authors=["Frank Herbert"], price=10)


@pytest.fixture
def razorpay_client():
    return FakeRazorpayClient()


@pytest.fixture
def gateway(razorpay_client):
    return RazorpayGateway(key_id="rzp_test_key", key_secret="secret", client=razorpay_client)


@pytest.fixture
def client(session, gateway):
    sessions = ShopperSessions()

    def _get_session():
        yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_shopper_sessions] = lambda: sessions
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    yield TestClient(app)

    app.dependency_overrides.clear()


def auth_headers(user):
    token = create_access_token({"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers

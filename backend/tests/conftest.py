import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from unittest.mock import MagicMock
import os
from uuid import uuid4

from backend.app.models.models import Base, User, Couple, CoupleStatus, ConversationRound
from backend.app.database import get_db_session
from backend.app.main import app
from backend.app.services.mediation_service import GigaChatMediator, MediationResult, get_mediator

# Use a test database
TEST_DATABASE_URL = "sqlite:///./test.db"

@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    # Teardown - drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def db_session(db_engine):
    """Returns a fresh SQLAlchemy session for each test"""
    Session = sessionmaker(bind=db_engine)
    session = Session()

    # Clear out test data from previous run
    session.query(ConversationRound).delete()
    session.query(Couple).delete()
    session.query(User).delete()
    session.commit()

    yield session
    session.close()

@pytest.fixture
def mock_mediator():
    """Mediator double that answers with a fixed recommendation"""
    mediator = MagicMock(spec=GigaChatMediator)
    mediator.mediate.side_effect = lambda message_a, message_b: MediationResult(
        recommendation="Поговорите спокойно и выслушайте друг друга.",
        emotion_summary={
            "partner1": {"emotion": "neutral", "intensity": 0},
            "partner2": {"emotion": "neutral", "intensity": 0},
            "overall_tone": "aligned",
        }
    )
    return mediator

@pytest.fixture
def client(db_session, mock_mediator):
    """Test client fixture that uses the db_session and mock_mediator fixtures"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_mediator] = lambda: mock_mediator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def test_user(db_session):
    """Creates a test user and returns it"""
    user = User(
        id=str(uuid4()),
        email="test@example.com",
        first_name="Иван",
        last_name="Иванов"
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture
def partner_user(db_session):
    """Creates the second partner and returns it"""
    partner = User(
        id=str(uuid4()),
        email="partner@example.com",
        first_name="Мария",
        last_name="Петрова"
    )
    db_session.add(partner)
    db_session.commit()
    db_session.refresh(partner)
    return partner

@pytest.fixture
def pending_couple(db_session, test_user):
    """Creates a couple still waiting for the second partner"""
    couple = Couple(
        id=str(uuid4()),
        partner_1_id=test_user.id,
        invite_code="ABCD1234",
        status=CoupleStatus.PENDING
    )
    db_session.add(couple)
    db_session.commit()
    db_session.refresh(couple)
    return couple

@pytest.fixture
def test_couple(db_session, test_user, partner_user):
    """Creates an active couple with both partners and returns it"""
    couple = Couple(
        id=str(uuid4()),
        partner_1_id=test_user.id,
        partner_2_id=partner_user.id,
        invite_code="QWER5678",
        status=CoupleStatus.ACTIVE
    )
    db_session.add(couple)
    db_session.commit()
    db_session.refresh(couple)
    return couple

# backend/tests/conftest.py
"""
Pytest configuration for the MOVT backend.

Tests run against an in-memory SQLite database. The environment is pinned
BEFORE any app import so the engine, settings and encryption key are the
test ones, never a developer's .env.
"""

import os

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["CI"] = "true"
os.environ["IS_TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MESSAGE_ENCRYPTION_KEY"] = "movt-test-message-secret"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""

from datetime import date, time
from typing import Dict, Iterator, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.enums import AppointmentStatus
from app.database import Base, SessionLocal, engine
from app.main import app as fastapi_app
from app.models import Appointment, TrainerAvailabilityWindow, User

settings.is_testing = True


def make_user(db: Session, email: str, name: Optional[str] = None, token: Optional[str] = None) -> User:
    user = User(email=email, name=name, session_token=token)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_window(
    db: Session, trainer: User, day_of_week: int, start: time, end: time, active: bool = True
) -> TrainerAvailabilityWindow:
    window = TrainerAvailabilityWindow(
        trainer_id=trainer.id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        active=active,
    )
    db.add(window)
    db.commit()
    db.refresh(window)
    return window


def make_appointment(
    db: Session,
    trainer: User,
    client: User,
    on_date: date,
    start: time,
    end: time,
    status: AppointmentStatus = AppointmentStatus.PENDING,
    notes: Optional[str] = None,
) -> Appointment:
    appointment = Appointment(
        trainer_id=trainer.id,
        client_id=client.id,
        appointment_date=on_date,
        start_time=start,
        end_time=end,
        status=status.value,
        notes=notes,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def auth_headers_for(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {user.session_token}"}


@pytest.fixture(autouse=True)
def _schema() -> Iterator[None]:
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client() -> Iterator[TestClient]:
    """TestClient with the lifespan run, so startup schema detection happens."""
    with TestClient(fastapi_app) as test_client:
        yield test_client


@pytest.fixture
def trainer(db: Session) -> User:
    return make_user(db, "trainer@movt.test", name="Tina Trainer", token="trainer-token")


@pytest.fixture
def client_user(db: Session) -> User:
    return make_user(db, "client@movt.test", name="Carl Client", token="client-token")


@pytest.fixture
def outsider(db: Session) -> User:
    return make_user(db, "outsider@movt.test", name="Olga Outsider", token="outsider-token")


@pytest.fixture
def monday_window(db: Session, trainer: User) -> TrainerAvailabilityWindow:
    """Trainer works Mondays 08:00-12:00."""
    return make_window(db, trainer, 1, time(8, 0), time(12, 0))


@pytest.fixture
def trainer_headers(trainer: User) -> Dict[str, str]:
    return auth_headers_for(trainer)


@pytest.fixture
def client_headers(client_user: User) -> Dict[str, str]:
    return auth_headers_for(client_user)


@pytest.fixture
def outsider_headers(outsider: User) -> Dict[str, str]:
    return auth_headers_for(outsider)


@pytest.fixture
def user_factory(db: Session):
    def _make(email: str, name: Optional[str] = None, token: Optional[str] = None) -> User:
        return make_user(db, email, name=name, token=token)

    return _make


@pytest.fixture
def window_factory(db: Session):
    def _make(trainer: User, day_of_week: int, start: time, end: time, active: bool = True):
        return make_window(db, trainer, day_of_week, start, end, active=active)

    return _make


@pytest.fixture
def appointment_factory(db: Session):
    def _make(
        trainer: User,
        client: User,
        on_date: date,
        start: time,
        end: time,
        status: AppointmentStatus = AppointmentStatus.PENDING,
        notes: Optional[str] = None,
    ) -> Appointment:
        return make_appointment(db, trainer, client, on_date, start, end, status=status, notes=notes)

    return _make

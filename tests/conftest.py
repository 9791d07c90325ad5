import os
from datetime import timedelta

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "whsec_test"
os.environ["TURNSTILE_SECRET_KEY"] = ""
os.environ["LEADS_NOTIFY_EMAIL"] = ""
os.environ["REMINDER_SCHEDULER_ENABLED"] = "false"
os.environ["SCHOOL_TIMEZONE"] = "Europe/Madrid"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import app.models  # noqa: E402,F401
from app.auth.jwt import create_access_token, get_password_hash  # noqa: E402
from app.database import Base, engine, get_db  # noqa: E402
from app.models.profile import Profile, StudentTeacher  # noqa: E402
from app.models.session import ClassSession  # noqa: E402
from app.models.subscription import Package, Subscription  # noqa: E402
from app.utils.timezone import add_months, ensure_utc, utcnow  # noqa: E402
from main import app  # noqa: E402

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_profile(db):
    def _make(role="student", email=None, full_name=None, password=None, **kwargs):
        profile = Profile(
            role=role,
            email=email or f"{role}{db.query(Profile).count() + 1}@campus.es",
            full_name=full_name or role.capitalize(),
            hashed_password=get_password_hash(password) if password else None,
            preferred_language=kwargs.pop("preferred_language", "es"),
            **kwargs,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile
    return _make


def _auth_headers(profile):
    token = create_access_token({"sub": str(profile.id), "role": profile.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student(make_profile):
    return make_profile("student", email="ana@campus.es", full_name="Ana Alumna")


@pytest.fixture
def teacher(make_profile):
    return make_profile("teacher", email="pablo@campus.es", full_name="Pablo Profesor")


@pytest.fixture
def admin(make_profile):
    return make_profile("admin", email="admin@campus.es", full_name="Admin")


@pytest.fixture
def package(db):
    row = Package(
        name="essential",
        display_name={"es": "Esencial", "en": "Essential", "ru": "Базовый"},
        price_monthly=160,
        sessions_per_month=8,
        price_1m="plan_essential_1m",
        price_3m="plan_essential_3m",
        price_6m="plan_essential_6m",
        is_active=True,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def make_subscription(db, package):
    def _make(student, sessions_total=8, sessions_used=0, months=1, status="active"):
        now = utcnow()
        subscription = Subscription(
            student_id=student.id,
            package_id=package.id,
            status=status,
            duration_months=months,
            starts_at=now - timedelta(days=1),
            ends_at=add_months(now, months),
            sessions_total=sessions_total,
            sessions_used=sessions_used,
        )
        db.add(subscription)
        db.commit()
        db.refresh(subscription)
        return subscription
    return _make


@pytest.fixture
def assign(db):
    def _assign(student, teacher, is_primary=True):
        pairing = StudentTeacher(student_id=student.id, teacher_id=teacher.id, is_primary=is_primary)
        db.add(pairing)
        db.commit()
        return pairing
    return _assign


@pytest.fixture
def make_session(db):
    def _make(subscription, teacher, scheduled_at, duration_minutes=60, status="scheduled", **kwargs):
        session = ClassSession(
            subscription_id=subscription.id,
            student_id=subscription.student_id,
            teacher_id=teacher.id,
            scheduled_at=ensure_utc(scheduled_at),
            duration_minutes=duration_minutes,
            status=status,
            reminder_sent=kwargs.pop("reminder_sent", False),
            **kwargs,
        )
        db.add(session)
        db.commit()
        db.refresh(session)
        return session
    return _make


@pytest.fixture
def auth_headers():
    return _auth_headers

#!/usr/bin/env python3
"""
Bootstrap script for the language school campus backend.

Checks the database connection, runs the migrations and seeds the packages
plus one admin, one teacher and one student for local testing.
"""

import os
import subprocess
import sys
from datetime import timedelta

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.auth.jwt import get_password_hash  # noqa: E402
from app.database import SessionLocal, engine, ensure_database_exists  # noqa: E402
from app.models import ClassSession, Package, Profile, StudentTeacher, Subscription  # noqa: E402
from app.utils.timezone import add_months, utcnow  # noqa: E402

DEFAULT_PASSWORD = os.getenv("SEED_PASSWORD", "test123")

PACKAGES = [
    {
        "name": "essential",
        "display_name": {"es": "Esencial", "en": "Essential", "ru": "Базовый"},
        "price_monthly": 160,
        "sessions_per_month": 8,
    },
    {
        "name": "intensive",
        "display_name": {"es": "Intensivo", "en": "Intensive", "ru": "Интенсивный"},
        "price_monthly": 280,
        "sessions_per_month": 16,
    },
]

USERS = [
    ("admin@example.com", "Admin", "admin"),
    ("teacher@example.com", "Profesor Demo", "teacher"),
    ("student@example.com", "Alumno Demo", "student"),
]


def run_command(command, description):
    """Run a shell command and handle errors"""
    print(f"\n{description}...")
    try:
        subprocess.run(command, shell=True, check=True, capture_output=True, text=True)
        print(f"✅ {description} completed successfully")
        return True
    except subprocess.CalledProcessError as e:
        print(f"❌ {description} failed: {e}")
        print(f"Error output: {e.stderr}")
        return False


def check_database():
    """Check the connection behind DATABASE_URL"""
    print("\nChecking database connection...")
    if engine is None:
        print("❌ Could not create a database engine. Check DATABASE_URL.")
        return False
    ensure_database_exists()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection successful")
        return True
    except OperationalError as e:
        print(f"❌ Database connection failed: {e}")
        return False


def run_migrations():
    return run_command("alembic upgrade head", "Running database migrations")


def seed_packages(db):
    for data in PACKAGES:
        package = db.query(Package).filter(Package.name == data["name"]).first()
        if package is None:
            prefix = os.getenv("SEED_PLAN_PREFIX", "plan")
            package = Package(
                price_1m=f"{prefix}_{data['name']}_1m",
                price_3m=f"{prefix}_{data['name']}_3m",
                price_6m=f"{prefix}_{data['name']}_6m",
                is_active=True,
                **data,
            )
            db.add(package)
            print(f"✅ Package created: {data['name']}")
        else:
            print(f"ℹ️ Package already exists: {data['name']}")
    db.commit()


def get_or_create_user(db, email, full_name, role):
    user = db.query(Profile).filter(Profile.email == email).first()
    if user is None:
        user = Profile(email=email, full_name=full_name, role=role)
        db.add(user)
        print(f"✅ User created: {email} ({role})")
    else:
        user.role = role
        print(f"ℹ️ User already exists (password reset): {email} ({role})")
    user.hashed_password = get_password_hash(DEFAULT_PASSWORD)
    db.commit()
    db.refresh(user)
    return user


def seed_demo_data(db, teacher, student):
    assignment = (
        db.query(StudentTeacher)
        .filter(StudentTeacher.student_id == student.id, StudentTeacher.teacher_id == teacher.id)
        .first()
    )
    if assignment is None:
        db.add(StudentTeacher(student_id=student.id, teacher_id=teacher.id, is_primary=True))
        print("✅ Teacher assigned to student")

    subscription = (
        db.query(Subscription)
        .filter(Subscription.student_id == student.id, Subscription.status == "active")
        .first()
    )
    if subscription is None:
        package = db.query(Package).filter(Package.name == "essential").one()
        now = utcnow()
        subscription = Subscription(
            student_id=student.id,
            package_id=package.id,
            status="active",
            duration_months=1,
            starts_at=now,
            ends_at=add_months(now, 1),
            sessions_total=package.sessions_per_month,
            sessions_used=1,
        )
        db.add(subscription)
        db.flush()

        # One past class already consumed and one class tomorrow
        db.add(ClassSession(
            subscription_id=subscription.id, student_id=student.id, teacher_id=teacher.id,
            scheduled_at=now - timedelta(days=1), duration_minutes=60, status="completed",
        ))
        db.add(ClassSession(
            subscription_id=subscription.id, student_id=student.id, teacher_id=teacher.id,
            scheduled_at=now + timedelta(days=1), duration_minutes=60, status="scheduled",
        ))
        print("✅ Active subscription with one completed and one scheduled class")
    else:
        print("ℹ️ Student already has an active subscription")
    db.commit()


def seed():
    print("\nSeeding data...")
    db = SessionLocal()
    try:
        seed_packages(db)
        users = {role: get_or_create_user(db, email, name, role) for email, name, role in USERS}
        seed_demo_data(db, users["teacher"], users["student"])
        return True
    except Exception as e:
        db.rollback()
        print(f"❌ Seeding failed: {e}")
        return False
    finally:
        db.close()


def main():
    print("🚀 Setting up the language school campus backend")
    print("=" * 60)

    if not os.path.exists("main.py"):
        print("❌ Please run this script from the project root")
        sys.exit(1)

    success = check_database()
    if success and not run_migrations():
        success = False
    if success and "--no-seed" not in sys.argv and not seed():
        success = False

    print("\n" + "=" * 60)
    if success:
        print("🎉 Setup completed successfully!")
        print(f"\nSeeded accounts use the password: {DEFAULT_PASSWORD}")
        print("\nTo start the server, run:")
        print("   uvicorn main:app --reload --host 0.0.0.0 --port 8000")
    else:
        print("❌ Setup failed. Please check the errors above and try again.")
        sys.exit(1)


if __name__ == "__main__":
    main()

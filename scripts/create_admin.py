#!/usr/bin/env python3
"""Create the initial admin user.

Usage:
    python scripts/create_admin.py [email] [password]

Defaults come from ADMIN_EMAIL / ADMIN_PASSWORD.
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.database import SessionLocal
from app.core.security import get_password_hash
from app.models import User, UserRole
from sqlalchemy import select


def create_admin_user(email: str, password: str):
    """Create an admin, or report the existing one."""
    db = SessionLocal()
    try:
        existing = db.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()

        if existing:
            print("Admin user already exists:")
            print(f"   Email: {existing.email}")
            print(f"   Role: {existing.role.value}")
            print(f"   ID: {existing.id}")
            return existing

        admin = User(
            email=email,
            hashed_password=get_password_hash(password),
            full_name="Administrator",
            role=UserRole.ADMIN,
            is_active=True,
            is_email_verified=True,
            is_approved=True,
        )

        db.add(admin)
        db.commit()
        db.refresh(admin)

        print("\nAdmin user created.")
        print(f"   Email: {admin.email}")
        print(f"   Role: {admin.role.value}")
        print(f"   ID: {admin.id}")
        print("\nChange this password after the first login.\n")

        return admin

    except Exception as e:
        print(f"Error: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    email = sys.argv[1] if len(sys.argv) > 1 else os.getenv("ADMIN_EMAIL", "admin@surveyflow.org")
    password = sys.argv[2] if len(sys.argv) > 2 else os.getenv("ADMIN_PASSWORD")
    if not password:
        sys.exit("Provide a password as the second argument or via ADMIN_PASSWORD")
    create_admin_user(email, password)

"""Provision an admin account out of band.

    python -m taskhub.create_admin --email admin@example.com --password secret
"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from taskhub.auth.service import register_user
from taskhub.db.session import SessionLocal, init_db
from taskhub.logging_setup import setup_logging
from taskhub.models.user import User, ROLE_ADMIN

logger = logging.getLogger(__name__)


def create_admin(db: Session, email: str, password: str, promote: bool = False) -> tuple[User, bool]:
    """Return ``(user, changed)``. An existing account is only touched with ``promote``."""
    existing = db.query(User).filter(User.email == email.strip().lower()).first()
    if existing is not None:
        if promote and existing.role != ROLE_ADMIN:
            existing.role = ROLE_ADMIN
            db.commit()
            logger.info("promoted user id=%s to admin", existing.id)
            return existing, True
        return existing, False
    return register_user(db, email, password, role=ROLE_ADMIN), True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin user.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--promote", action="store_true", help="upgrade an existing user to admin")
    args = parser.parse_args(argv)

    setup_logging()
    init_db()
    db = SessionLocal()
    try:
        user, changed = create_admin(db, args.email, args.password, promote=args.promote)
    finally:
        db.close()

    if not changed:
        print(f"User {args.email} already exists (role={user.role})")
        return 0
    print(f"Admin user ready: {args.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

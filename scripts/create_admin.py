"""
Create the first admin account.

Admins cannot be created through the API, so a fresh install runs this once:

    python -m scripts.create_admin --username admin --email admin@example.com --name "Portal Admin"
"""
import argparse
import getpass
import sys

from sqlalchemy.exc import IntegrityError

from auth.utils.auth_utils import get_password_hash
from core.database import SessionLocal
from user.models import User, UserRole
from user.service import get_user_by_username, get_user_by_email
import models_bootstrap  # noqa: F401


def create_admin(db, username: str, email: str, name: str, password: str) -> User:
    if get_user_by_username(db, username) or get_user_by_email(db, email):
        raise ValueError(f"user '{username}' or email '{email}' already exists")

    admin = User(
        username=username,
        email=email,
        name=name,
        password_hash=get_password_hash(password),
        role=UserRole.admin,
        manager_id=None,
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"user '{username}' or email '{email}' already exists")
    db.refresh(admin)
    return admin


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    args = parser.parse_args(argv)

    while True:
        password = getpass.getpass("Admin password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password and password == confirm:
            break
        print("Passwords do not match or are empty. Try again.", file=sys.stderr)

    with SessionLocal() as db:
        try:
            admin = create_admin(db, args.username, args.email, args.name, password)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    print(f"Admin '{admin.username}' created with id {admin.id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

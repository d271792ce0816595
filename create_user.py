"""Command-line account management for the API's session login.

    python create_user.py alice s3cret admin
    python create_user.py alice n3w-s3cret user --reset
"""

import argparse
import logging
import sys

from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import ROLES, User

logger = logging.getLogger(__name__)


def create_user(app, username, password, role, *, reset=False):
    """
    Create ``username`` with a hashed password and ``role``.

    Returns the user id, or None when the username is taken and ``reset`` is
    off. With ``reset`` an existing account gets the new password and role.
    """
    username = (username or "").strip()
    if not username or not password:
        raise ValueError("username and password are required")
    if role not in ROLES:
        raise ValueError(f"role must be one of {', '.join(ROLES)}")

    with app.app_context():
        user = User.query.filter_by(username=username).first()
        if user is not None and not reset:
            logger.warning("user.exists username=%s role=%s", username, user.role)
            return None

        if user is None:
            user = User(username=username)
            db.session.add(user)
        user.password = generate_password_hash(password)
        user.role = role
        db.session.commit()
        logger.info("user.%s username=%s role=%s", "reset" if reset else "created", username, role)
        return user.id


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or reset an API user.")
    parser.add_argument("username", help="Username")
    parser.add_argument("password", help="Password")
    parser.add_argument("role", choices=list(ROLES), help="User role")
    parser.add_argument("--reset", action="store_true",
                        help="Overwrite password and role of an existing user")
    args = parser.parse_args(argv)

    user_id = create_user(create_app(), args.username, args.password, args.role, reset=args.reset)
    if user_id is None:
        print(f"User '{args.username}' already exists; pass --reset to overwrite it.")
        return 1
    print(f"{args.username}: id={user_id} role={args.role}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

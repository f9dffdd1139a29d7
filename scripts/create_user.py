"""Utility script to register a user and print an access token for it."""

from __future__ import annotations

import argparse

from app.domain.entities import User
from app.domain.exceptions import RetryableStoreFailure, UniqueConstraintViolation
from app.infrastructure.database import SessionLocal, initialize_database
from app.infrastructure.repositories import UserRepository
from app.infrastructure.security import create_user_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(
        description="Create a user known to the messaging core and issue a bearer token.",
    )
    parser.add_argument("--name", default="Administrator", help="Full name of the user")
    parser.add_argument("--email", default="admin@example.com", help="Email address")
    parser.add_argument(
        "--role",
        default="admin",
        choices=("client", "agent", "admin"),
        help="Platform role (default: admin)",
    )
    parser.add_argument(
        "--realtime-uid",
        default=None,
        help="Identity of the user in the realtime store (optional)",
    )
    parser.add_argument(
        "--push-token",
        default=None,
        help="Expo push token of the user's device (optional)",
    )
    return parser.parse_args()


def main() -> None:
    """Create a user using the provided command line arguments."""

    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        user = UserRepository(session).create(
            User(
                id=None,
                name=args.name,
                email=args.email,
                role=args.role,
                realtime_uid=args.realtime_uid,
                push_token=args.push_token,
                is_active=True,
                created_at=None,
            )
        )
    except UniqueConstraintViolation as exc:
        raise SystemExit(f"Could not create the user: {exc}") from exc
    except RetryableStoreFailure as exc:
        raise SystemExit(f"Database unavailable while saving the user: {exc}") from exc
    finally:
        session.close()

    print(
        "User created:\n"
        f"  ID: {user.id}\n"
        f"  Name: {user.name}\n"
        f"  Role: {user.role}\n"
        f"  Token: {create_user_token(user.id)}"
    )


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Mint a bearer token for local development.

USAGE:
    python scripts/create_token.py --subject alice --role LIBRARIAN
    python scripts/create_token.py --subject root --role ADMIN --role USER --minutes 60

    curl -H "Authorization: Bearer $(python scripts/create_token.py --role USER)" \\
        http://localhost:8080/api/v1/books

The token is signed with SECRET_KEY from the environment (or .env), the
same key the API verifies with.
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bookapi.services.security import Role, create_access_token


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a signed access token.")
    parser.add_argument("--subject", default="developer", help="value of the sub claim")
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        choices=[role.value for role in Role],
        help="role to grant; repeat for several (default: USER)",
    )
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="lifetime in minutes (default: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    args = parser.parse_args()

    expires = timedelta(minutes=args.minutes) if args.minutes is not None else None
    roles = [Role(name) for name in (args.roles or [Role.USER.value])]

    print(create_access_token(args.subject, roles, expires_delta=expires))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Issue a dashboard API key for a user.

Usage:
    python scripts/issue_api_key.py --user-id UUID [--name "laptop"] [--expires-in-days 90]

The plain key is printed once and cannot be recovered afterwards.
"""

import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.services.api_key_service import create_api_key


def main():
    parser = argparse.ArgumentParser(description="Issue a dashboard API key")
    parser.add_argument(
        "--user-id",
        type=str,
        required=True,
        help="User the key authenticates as",
    )
    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Optional label shown in key listings",
    )
    parser.add_argument(
        "--expires-in-days",
        type=int,
        default=None,
        help="Optional lifetime in days (default: never expires)",
    )

    args = parser.parse_args()

    try:
        key = create_api_key(args.user_id, name=args.name, expires_in_days=args.expires_in_days)
    except SQLAlchemyError as e:
        print(f"✗ Error issuing API key: {e}", file=sys.stderr)
        sys.exit(1)

    print("✓ API key issued")
    print(f"  Key id:  {key['key_id']}")
    print(f"  Prefix:  {key['key_prefix']}")
    if key["expires_at"]:
        print(f"  Expires: {key['expires_at']}")
    print(f"\n  {key['api_key']}\n")
    print("Store it now; it is not shown again.")


if __name__ == "__main__":
    main()

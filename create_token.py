"""Print a bearer token for an existing user id.

Usage:
    python create_token.py 1 --admin --days 365
"""
import argparse

from soundmap_api.app.core.security import ROLE_ADMIN, ROLE_USER, create_access_token


def main() -> None:
    ap = argparse.ArgumentParser(description="Issue a Sound Map API token.")
    ap.add_argument("user_id", type=int, help="Id of the user the token is issued for")
    ap.add_argument("--admin", action="store_true", help="Issue the token with the admin role")
    ap.add_argument("--days", type=int, default=7, help="Lifetime of the token in days")
    args = ap.parse_args()

    role = ROLE_ADMIN if args.admin else ROLE_USER
    print(create_access_token(args.user_id, role, expires_delta=args.days * 24 * 60 * 60))


if __name__ == "__main__":
    main()

"""Print a bearer token for a librarian account.

    python mint_staff_jwt.py librarian@school.example --days 7

Signs with SECRET_KEY / JWT_ALGORITHM from the environment (or .env).
"""
import argparse
from datetime import timedelta

from src.shared.security import create_access_token

parser = argparse.ArgumentParser(description="Mint a staff access token")
parser.add_argument("sub", help="Staff identifier placed in the `sub` claim")
parser.add_argument("--roles", default="LIBRARIAN", help="Comma separated roles")
parser.add_argument("--days", type=int, default=7, help="Token lifetime in days")

if __name__ == "__main__":
    args = parser.parse_args()
    roles = [r.strip() for r in args.roles.split(",") if r.strip()]
    token = create_access_token(args.sub, roles=roles, expires_delta=timedelta(days=args.days))
    print(token)

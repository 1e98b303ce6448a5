"""
Create an account from the command line (e.g. an extra admin). Run from project root:
  python -m escrowswap.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m escrowswap.scripts.create_user ops@example.com your-secure-password admin
"""
import argparse
import sys

from escrowswap.core.database import SessionLocal, init_db
from escrowswap.services.accounts import ROLE_ADMIN, ROLE_USER, AccountError, register_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an EscrowSwap account.")
    parser.add_argument("email", help="E-mail address (unique)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("role", nargs="?", default=ROLE_USER, choices=[ROLE_USER, ROLE_ADMIN])
    args = parser.parse_args(argv)

    init_db()
    db = SessionLocal()
    try:
        user = register_user(db, args.email, args.password, role=args.role, verified=True)
    except AccountError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.email}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Dispatchline database management CLI.

Provides commands to create and drop the database schema.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def _domain(database_url=None):
    from shared.config import get_settings
    from shared.domain import init_domain

    url = database_url or get_settings().database_url
    return url, init_domain(url)


def setup_database(database_url=None):
    """Create every table on the configured (or given) database."""
    from shared.database import setup_db

    url, domain = _domain(database_url)
    print(f"Creating schema on {url}...")
    setup_db(domain)
    print("Done.")


def drop_database(database_url=None):
    """Drop every table on the configured (or given) database."""
    from shared.database import drop_db

    url, domain = _domain(database_url)
    print(f"Dropping schema on {url}...")
    drop_db(domain)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Dispatchline database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup-db", help="Create all database tables")
    setup_parser.add_argument("--database-url", help="Override DISPATCH_DATABASE_URL")

    drop_parser = subparsers.add_parser("drop-db", help="Drop all database tables")
    drop_parser.add_argument("--database-url", help="Override DISPATCH_DATABASE_URL")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database(args.database_url)
    elif args.command == "drop-db":
        drop_database(args.database_url)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

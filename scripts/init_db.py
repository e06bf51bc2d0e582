#!/usr/bin/env python3
"""Create the Pot Monitor tables in the configured database."""

from __future__ import annotations

import argparse
import json

from potmonitor.core.config import settings
from potmonitor.db.session import Base, build_engine
from potmonitor.models import entities  # noqa: F401  registers the tables


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()

    engine = build_engine(args.database_url)
    try:
        if args.drop:
            Base.metadata.drop_all(engine)
        Base.metadata.create_all(engine)
    finally:
        engine.dispose()

    print(
        json.dumps(
            {
                "database": engine.url.render_as_string(hide_password=True),
                "tables": sorted(Base.metadata.tables),
                "dropped": args.drop,
            },
            indent=2,
        )
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

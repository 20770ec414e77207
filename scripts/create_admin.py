"""
Create the first admin user in the configured database.

Usage:
    python scripts/create_admin.py

Reads DATABASE_URL and FIRST_ADMIN_* from the environment (or .env).
Does nothing when a user with FIRST_ADMIN_USERNAME already exists.
"""

import logging
import sys

from studyprep.core.config import get_settings
from studyprep.core.database import DatabaseManager, build_engine, build_session_factory
from studyprep.services import seed_first_admin
from studyprep.storage import StorageProvider


logger = logging.getLogger("create_admin")


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    engine = build_engine(settings)
    DatabaseManager(engine).create_all_tables()
    provider = StorageProvider("database", build_session_factory(engine))

    try:
        with provider.open() as storage:
            seed_first_admin(storage, settings)
    except Exception:
        logger.exception("Error creating admin user")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

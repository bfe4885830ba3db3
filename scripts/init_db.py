"""Create the school_core database (if missing) and apply schema.sql.

Usage: APP_ENV=production python scripts/init_db.py
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.school_core.school_core.database.bootstrap import apply_schema, list_tables


def main() -> None:
    load_dotenv(override=False)
    settings_module = get_settings_module()
    db_config = dict(importlib.import_module(settings_module).DB_CONFIG)

    apply_schema(db_config)
    tables = list_tables(db_config)
    print(f"[{settings_module}] schema ready on {db_config.get('host')}/{db_config.get('database')}")
    for name in tables:
        print(f"  - {name}")


if __name__ == "__main__":
    main()

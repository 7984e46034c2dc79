"""Entrypoint for running the ambient gallery web server."""
from __future__ import annotations

import os
from pathlib import Path

from ambient_gallery import create_app


def _optional_path(raw: str | None) -> Path | None:
    return Path(raw) if raw else None


# Configuration from environment variables
PUBLIC_DIR_STR = os.environ.get("AMBIENT_PUBLIC_DIR", "public")
DB_PATH_STR = os.environ.get("AMBIENT_DB_PATH", "settings.db")
CATALOG_MODE = os.environ.get("AMBIENT_CATALOG_MODE")
HOST = os.environ.get("AMBIENT_HOST", "0.0.0.0")
PORT = int(os.environ.get("AMBIENT_PORT", "8012"))
DEBUG = os.environ.get("AMBIENT_DEBUG") == "1"

# Convert to Path objects
public_dir = _optional_path(PUBLIC_DIR_STR)
db_path = _optional_path(DB_PATH_STR)

# Create the Flask application; fails fast when the selection store is unusable
app = create_app(public_dir, db_path=db_path, catalog_mode=CATALOG_MODE)

if __name__ == "__main__":
    app.run(host=HOST, port=PORT, debug=DEBUG)

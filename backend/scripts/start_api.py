"""
Start the cargo back office API with uvicorn.

    PORT=8080 python scripts/start_api.py
"""
import os
import sys

import uvicorn

from app.core.config import settings


def _read_port() -> int:
    """Fetch and validate the PORT environment variable."""
    value = os.environ.get("PORT", "8000")
    try:
        return int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid PORT '{value}': {exc}") from exc


def main() -> None:
    uvicorn.run(
        "app.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=_read_port(),
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.ENVIRONMENT == "development",
    )


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:
        print(f"Failed to start API: {exc}", file=sys.stderr)
        raise

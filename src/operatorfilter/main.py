"""Operator filter service entry point."""

import uvicorn

from operatorfilter.api.app import create_app
from operatorfilter.config import get_settings


def main() -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

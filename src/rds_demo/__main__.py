"""Run the server: ``python -m rds_demo`` or ``rds-demo``."""

import logging

import uvicorn

from rds_demo.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # uvicorn handles SIGTERM/SIGINT: it drains requests, then runs the lifespan exit
    uvicorn.run(
        "rds_demo.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()

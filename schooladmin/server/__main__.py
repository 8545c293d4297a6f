"""Run the SchoolAdmin server with uvicorn: ``python -m schooladmin.server``."""

import uvicorn

from .core.config import settings


def main() -> None:
    uvicorn.run(
        "schooladmin.server.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()

"""Run the YoursKanban API with uvicorn."""

import uvicorn

from core.config import settings
from core.logging_setup import setup_logging


def main() -> None:
    setup_logging(level=settings.log_level, log_dir=settings.log_dir)
    uvicorn.run(
        "presentation:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()

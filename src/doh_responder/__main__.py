"""Entry point for running the application directly."""

import uvicorn

from doh_responder.core.config import get_settings


def main():
    """Run the application."""
    settings = get_settings()

    uvicorn.run(
        "doh_responder.app:app",
        host=settings.host,
        port=settings.port,
        log_level="warning",
    )


if __name__ == "__main__":
    main()

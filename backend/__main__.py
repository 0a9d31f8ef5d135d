import uvicorn

from backend.config import load_settings
from backend.logging_setup import setup_logging


def main():
    settings = load_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        "backend.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()

"""Run the API server: ``python -m studio``."""
import uvicorn

from studio.core.config import get_settings


def run() -> None:
    """Run the server."""
    settings = get_settings()
    uvicorn.run(
        "studio.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level="info",
    )


if __name__ == "__main__":
    run()

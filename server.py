"""
Tasker backend - Entry Point

Run with: uvicorn server:app --host 0.0.0.0 --port 8080
"""

from api.app import configure_logging, create_app
from config.settings import get_settings

configure_logging(get_settings().log_level)

app = create_app()

__all__ = ["app", "create_app"]

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())

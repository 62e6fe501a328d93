"""Entry point: ``python -m featured_video_api.main`` or the ``featured-video-api`` script."""

import uvicorn

from featured_video_api.app import create_app
from featured_video_api.core.config import get_settings

app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()

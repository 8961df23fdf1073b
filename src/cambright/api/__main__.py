"""
cambright.api.__main__

`python -m cambright.api` / `cambright-api` console script.

Responsibilities:
- Build the app from environment settings and serve it with uvicorn.
- Leave log formatting to structlog (uvicorn's own config and access log are off;
  the request middleware already logs every request).
"""

from __future__ import annotations

import uvicorn

from cambright.api.app import create_app
from cambright.observability.logging import get_logger
from cambright.settings import get_settings

log = get_logger(__name__)


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)
    log.info("serving", host=settings.api_host, port=settings.api_port, env=settings.env)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
        access_log=False,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()

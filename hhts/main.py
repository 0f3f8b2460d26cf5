"""FastAPI app factory.

Serve with ``uvicorn hhts.main:app`` or ``python -m hhts.main``
(install the ``serve`` extra).
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from hhts import __version__
from hhts.config import settings

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.hhts_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="HHTS",
        description="Hierarchical histogram threshold superpixel segmentation",
        version=__version__,
    )

    from hhts.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.hhts_host, port=settings.hhts_port)

"""FastAPI application."""

import argparse
import logging
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from configs import Settings, settings
from nutrient_navigator.controllers.price_controllers import price_router
from nutrient_navigator.logger_config import get_logger


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Build the API with CORS, logging and the price routes."""
    config = config or Settings()

    for name in ("price_search", "prices.api"):
        get_logger(name, config.LOG_LEVEL.upper())

    logger.info("Starting FastAPI application...")
    application = FastAPI(
        title="Nutrient Navigator API - Prices",
        root_path=config.ROOT_PATH_BACKEND,
        description="Price comparison endpoints for the Nutrient Navigator frontend",
    )
    application.state.settings = config
    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    application.include_router(price_router)

    @application.get("/", response_description="Api healthcheck")  # type: ignore[misc]
    async def index() -> Dict[str, str]:
        """Define a route for handling HTTP GET requests to the root URL ("/")."""
        return {"status": "ok"}

    return application


app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    parser = argparse.ArgumentParser()
    parser.add_argument("--docker", action="store_true", help="Running with docker")
    parser.add_argument("--host", required=True, help="Application host.")
    parser.add_argument("--port", required=True, help="Application port.")
    parser.add_argument(
        "--reload",
        required=False,
        help="Enable auto-reload for development purposes.",
    )
    args = parser.parse_args()
    if not args.docker:
        from dotenv import load_dotenv

        load_dotenv("../../.env")

    # The factory re-reads settings so values from the .env above apply.
    uvicorn.run(
        "app:create_app",
        factory=True,
        host=args.host,
        port=int(args.port),
        reload=bool(args.reload),
    )

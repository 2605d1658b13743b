#!/usr/bin/env python
"""FastAPI server for the Infringement Finder."""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Add src directory to Python path for imports
src_dir = Path(__file__).parent.parent
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import close_services, get_config
from api.routers import analysis, core
from utils.config import validate_config
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    setup_logging(config.get("log_level", "INFO"), json_output=config.get("log_json", False))

    for error in validate_config(config):
        logger.warning(f"Config: {error}")

    logger.info("Infringement Finder API started")
    yield
    await close_services()
    logger.info("Infringement Finder API stopped")


app = FastAPI(title="Infringement Finder API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().get("cors_origins", ["http://localhost:3000"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 like every other invalid input."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


app.include_router(core.router)
app.include_router(analysis.router)


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(app, host=config["server_host"], port=config["server_port"], log_level="info")

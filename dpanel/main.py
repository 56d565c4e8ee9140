import argparse

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from dpanel.core.config import API_PREFIX, CONFIG_PATH, STATIC_PATH
from dpanel.core.logger import set_debug_mode, setup_logger
from dpanel.routers.config import router as config_router
from dpanel.routers.stats import router as stats_router
from dpanel.routers.languages import router as languages_router
from dpanel.routers.logs import router as logs_router
from dpanel.routers.system import router as system_router
from dpanel.services.web_settings import resolve_web_settings

logger = setup_logger("DPanel")


async def invalid_request_handler(request: Request, exc: RequestValidationError):
  return JSONResponse(
    status_code=status.HTTP_400_BAD_REQUEST,
    content={"detail": "Invalid request format"}
  )


def create_app() -> FastAPI:
  app = FastAPI(title="Deeprotection Web Panel", version="0.1.0")
  app.state.web_settings = resolve_web_settings(CONFIG_PATH)
  app.add_exception_handler(RequestValidationError, invalid_request_handler)

  app.include_router(config_router, prefix=API_PREFIX, tags=["config"])
  app.include_router(stats_router, prefix=API_PREFIX, tags=["stats"])
  app.include_router(languages_router, prefix=API_PREFIX, tags=["languages"])
  app.include_router(logs_router, prefix=API_PREFIX, tags=["logs"])
  app.include_router(system_router, prefix=API_PREFIX, tags=["system"])

  # Mounted last so it never shadows /api
  if STATIC_PATH.is_dir():
    app.mount("/", StaticFiles(directory=STATIC_PATH, html=True), name="static")
  return app


app = create_app()


def run(argv=None):
  parser = argparse.ArgumentParser(description="Deeprotection Web Panel")
  parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
  args = parser.parse_args(argv)

  if args.debug:
    set_debug_mode(True)
  settings = app.state.web_settings
  logger.info(f"Starting Deeprotection Web Panel on {settings.address}")
  uvicorn.run(
    app,
    host=settings.ip,
    port=settings.port,
    log_level="debug" if args.debug else "info"
  )


if __name__ == "__main__":
  run()

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from pricealert.api.history import router as history_router
from pricealert.api.prices import router as prices_router
from pricealert.container import Container
from pricealert.db.session import create_all
from pricealert.exceptions import Internal, InvalidRequestError, PriceAlertError
from pricealert.logging_config import configure_logging

logger = logging.getLogger("pricealert.api")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    settings = container.settings()
    configure_logging(settings.log_level, settings.log_json)
    app.state.container = container

    engine = container.engine()
    if settings.create_tables:
        await create_all(engine)
    yield
    await container.http_client().close()
    await engine.dispose()


app = FastAPI(title="PriceAlert", version=VERSION, lifespan=lifespan)


@app.exception_handler(PriceAlertError)
async def price_alert_error_handler(request: Request, exc: PriceAlertError):
    if exc.status_code >= 500:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.debug("Malformed request on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=InvalidRequestError("Invalid request body.").to_payload())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content=Internal().to_payload())


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prices_router)
app.include_router(history_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION}

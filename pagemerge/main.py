import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from pagemerge import __version__
from pagemerge.log_config import configure_logging
from pagemerge.routers.extract import SERVICE_DESCRIPTION, limiter, router as extract_router

configure_logging()

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Pagemerge – Multi-page Article Extractor",
    description=SERVICE_DESCRIPTION,
    version=__version__,
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(extract_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "Hello from Pagemerge"}

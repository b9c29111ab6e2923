from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from constants import LOG_FILE, LOG_LEVEL
from errors import RelayRequestError
from logging_config import get_logger, setup_logging
from routers.relay import relay_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

# Trailing-slash variants are unknown paths, not redirects
app = FastAPI(title="Pair Relay", redirect_slashes=False)

# Configure CORS to allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
)

app.include_router(relay_router)


@app.exception_handler(RelayRequestError)
async def relay_request_error_handler(request: Request, exc: RelayRequestError):
    logger.info(f"Rejected {request.method} {request.url.path} from {request.client.host if request.client else 'unknown'}: {exc.detail}")
    return PlainTextResponse(exc.detail, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Plain text for 404s and friends, matching the health endpoint
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=getattr(exc, "headers", None))


logger.info("FastAPI application initialized")

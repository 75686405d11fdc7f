import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cloudmap import config
from cloudmap.api.routes import router
from cloudmap.db.session import init_db
from cloudmap.errors import CloudMapError, LLMServiceError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CloudMap",
    version="0.5.0",
)

# Middleware FIRST
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Intent-Type", "X-Intent-Confidence", "X-Architecture-Updated", "Content-Disposition"],
)

# Routes AFTER middleware
app.include_router(router, prefix="/api")


@app.exception_handler(LLMServiceError)
def handle_llm_service_error(request: Request, exc: LLMServiceError):
    logger.error("[API] Model service error on %s: %s", request.url.path, exc.message)
    if exc.retryable:
        return JSONResponse(
            status_code=503,
            content={
                "message": "AI service temporarily unavailable. Please try again in a few moments.",
                "retryable": True,
                "error": exc.message,
            },
        )
    return JSONResponse(status_code=500, content={"message": exc.message})


@app.exception_handler(CloudMapError)
def handle_cloudmap_error(request: Request, exc: CloudMapError):
    if exc.status_code >= 500:
        logger.error("[API] %s failed: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.on_event("startup")
def startup():
    init_db()

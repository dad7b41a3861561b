import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from config import settings
from database import Base, SessionLocal, engine
from dependencies import limiter
from errors import register_error_handlers
from routers import analytics, auth, creators, export, site_settings, subscriptions
from uploads import UPLOAD_URL_PREFIX, ensure_upload_dir
import crud

# Tracing
from opentelemetry import trace
from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.cloud_trace_propagator import (
    CloudTraceFormatPropagator,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# Rate Limiting
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Configure Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_tracing(app: FastAPI):
    set_global_textmap(CloudTraceFormatPropagator())
    tracer_provider = TracerProvider()
    tracer_provider.add_span_processor(BatchSpanProcessor(CloudTraceSpanExporter()))
    trace.set_tracer_provider(tracer_provider)
    FastAPIInstrumentor.instrument_app(app)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        crud.seed_defaults(
            db,
            settings.DEFAULT_ADMIN_USERNAME,
            settings.DEFAULT_ADMIN_EMAIL,
            settings.DEFAULT_ADMIN_PASSWORD,
        )
    finally:
        db.close()
    logger.info("Psycheverse Admin API ready")
    yield


app = FastAPI(title="Psycheverse Admin API", version="1.0.0", lifespan=lifespan)

if settings.tracing_enabled:
    setup_tracing(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_error_handlers(app)

app.include_router(auth.router)
app.include_router(creators.router)
app.include_router(subscriptions.router)
app.include_router(analytics.router)
app.include_router(site_settings.router)
app.include_router(export.router)

app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=ensure_upload_dir()), name="uploads")


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3001)

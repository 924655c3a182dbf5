"""
FastAPI app

- CORS configured for the dashboard front-end
- Lifespan builds the backend, loads the store and starts real-time sync
- Domain errors are mapped to HTTP status codes in one place
- Basic health check
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv

# Load environment variables from .env file before config is imported
# Get the project root directory (parent of app/)
project_root = Path(__file__).parent.parent
load_dotenv(dotenv_path=project_root / '.env')

from app.api import router
from app.api.middleware import TimingMiddleware
from app.api.utils import error_body, status_code_for
from app.core import config
from app.core.errors import StoreError
from app.database import create_backend
from app.services.notifier import AlertNotifier
from app.services.store import PatientStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    backend = create_backend()
    store = PatientStore(backend)

    # One collection failing to load does not stop startup
    status = await store.load()
    failed = [kind for kind, loaded in status.items() if not loaded]
    if failed:
        logger.warning("Started with collections that failed to load: %s", ", ".join(failed))

    notifier = AlertNotifier(history_size=config.NOTIFICATION_HISTORY)
    notifier.attach(store)
    store.start_sync()

    app.state.backend = backend
    app.state.store = store
    app.state.notifier = notifier
    logger.info("Swasthya Saathi backend ready (%s storage)", config.STORAGE_BACKEND)
    try:
        yield
    finally:
        notifier.detach()
        await store.close()
        await backend.close()
        app.state.store = None
        app.state.notifier = None


app = FastAPI(title="Swasthya Saathi", lifespan=lifespan)

# Add timing middleware for performance monitoring
app.add_middleware(TimingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=status_code_for(exc), content=error_body(exc))


app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """
    Basic health check
    """
    return {"status": "ok"}

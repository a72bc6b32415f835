import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from app.api.health import router as health_router
from app.api.routes_products import router as products_router
from app.config import settings
from app.db import init_db
from app.logging_setup import setup_logging
from app.services.upload_service import sweep_stale_imports, uploads_dir

setup_logging(settings)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()

    scheduler = None
    if settings.IMPORT_SWEEP_ENABLED:
        # import files normally vanish right after processing; this catches leftovers
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            sweep_stale_imports,
            "interval",
            seconds=settings.IMPORT_SWEEP_INTERVAL_SECONDS,
            id="sweep_stale_imports",
        )
        scheduler.start()

    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Inventory Manager - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    log.exception("storage error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(products_router, prefix="/api/products", tags=["products"])

# stored images are served back from here
app.mount("/uploads", StaticFiles(directory=str(uploads_dir())), name="uploads")


@app.get("/")
def root():
    return {"message": "Backend running successfully"}

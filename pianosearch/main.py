import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from .api.routes import auth, billing, classrooms, contact, me, misc
from .db.session import Base, engine
from .config import get_settings
from .services.storage import BASE_MEDIA_DIR, ensure_media_directory
from .workers.scheduler import get_scheduler


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PianoSearch API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(classrooms.router, prefix="/api/v1")
app.include_router(me.router, prefix="/api/v1")
app.include_router(billing.router, prefix="/api/v1")
app.include_router(contact.router, prefix="/api/v1")
app.include_router(misc.router, prefix="/api/v1")
app.include_router(misc.seo_router)

ensure_media_directory()
app.mount(
    settings.media_url_prefix,
    StaticFiles(directory=BASE_MEDIA_DIR),
    name="media",
)

scheduler = get_scheduler()


@app.on_event("startup")
async def startup_event() -> None:
    Base.metadata.create_all(bind=engine)
    if settings.scheduler_enabled:
        scheduler.start()
        logger.info("Background scheduler started")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)

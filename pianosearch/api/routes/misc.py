from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.orm import Session

from ...config import get_settings
from ...core import catalog
from ...db.session import get_db
from ...services import sitemap_service

router = APIRouter(tags=["misc"])
seo_router = APIRouter(tags=["seo"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/catalog/options")
def catalog_options():
    return catalog.options()


@seo_router.get("/sitemap.xml")
def sitemap(db: Session = Depends(get_db)):
    xml = sitemap_service.build_sitemap(db, get_settings().site_url)
    return Response(content=xml, media_type="application/xml")


@seo_router.get("/robots.txt", response_class=PlainTextResponse)
def robots():
    return sitemap_service.build_robots(get_settings().site_url)

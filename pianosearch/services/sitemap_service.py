from __future__ import annotations

from datetime import date, datetime
from xml.sax.saxutils import escape

from sqlalchemy.orm import Session

from ..core.constants import SITEMAP_SEARCH_PAGES, SITEMAP_STATIC_PAGES
from ..db import models
from . import visibility

CLASSROOM_PRIORITY = "0.7"
CLASSROOM_CHANGEFREQ = "weekly"


def _url_entry(base_url: str, path: str, lastmod: date, changefreq: str, priority: str) -> str:
    return (
        "  <url>\n"
        f"    <loc>{escape(base_url + path)}</loc>\n"
        f"    <lastmod>{lastmod.isoformat()}</lastmod>\n"
        f"    <changefreq>{changefreq}</changefreq>\n"
        f"    <priority>{priority}</priority>\n"
        "  </url>"
    )


def build_sitemap(
    db: Session,
    base_url: str,
    today: date | None = None,
    now: datetime | None = None,
) -> str:
    base_url = base_url.rstrip("/")
    today = today or date.today()
    entries = [
        _url_entry(base_url, path, today, changefreq, priority)
        for path, priority, changefreq in (*SITEMAP_STATIC_PAGES, *SITEMAP_SEARCH_PAGES)
    ]
    classrooms = (
        visibility.visible_classrooms(db.query(models.Classroom), now)
        .order_by(models.Classroom.id.asc())
        .all()
    )
    for classroom in classrooms:
        updated = classroom.updated_at or classroom.created_at
        lastmod = updated.date() if updated else today
        entries.append(
            _url_entry(
                base_url,
                f"/classroom/{classroom.id}",
                lastmod,
                CLASSROOM_CHANGEFREQ,
                CLASSROOM_PRIORITY,
            )
        )
    body = "\n".join(entries)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        f"{body}\n"
        "</urlset>\n"
    )


def build_robots(base_url: str) -> str:
    return f"User-agent: *\nAllow: /\n\nSitemap: {base_url.rstrip('/')}/sitemap.xml\n"

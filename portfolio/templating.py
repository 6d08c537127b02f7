"""
Template rendering utilities
"""

from __future__ import annotations

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from portfolio.config import get_settings
from portfolio.gallery import format_status, join_tags

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent / "static"

NAV_ITEMS = [
    ("/", "Home"),
    ("/food", "Food"),
    ("/cars", "Cars"),
    ("/anime", "Anime"),
    ("/business", "Business"),
]

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["nav_items"] = NAV_ITEMS
templates.env.globals["format_status"] = format_status
templates.env.filters["join_tags"] = join_tags


def render_template(
    request: Request, template_name: str, context: dict | None = None, status_code: int = 200
):
    """Render template with context"""
    settings = get_settings()
    base = {"site_title": settings.site_title, "user": getattr(request.state, "user", None)}
    base.update(context or {})
    return templates.TemplateResponse(
        request, template_name, base, status_code=status_code
    )

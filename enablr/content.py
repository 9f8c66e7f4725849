"""Tracked marketing pages: CRUD and view/click counters."""

import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import or_, select

from enablr.db import ContentPage, get_session
from enablr.errors import NotFoundError, ValidationError
from enablr.schemas import ContentPageIn

logger = logging.getLogger("enablr.content")

COUNTERS = {
    "page_view": "page_views",
    "cta_click": "cta_clicks",
}


def normalize_url(url: str) -> str:
    """Drop the query string and one trailing slash; the site root stays ``/``."""
    path = url.split("?", 1)[0]
    if path.endswith("/"):
        path = path[:-1]
    return path or "/"


class ContentService:
    async def create(self, payload: ContentPageIn) -> ContentPage:
        if not payload.title or not payload.url:
            raise ValidationError("Title and URL are required", field="title" if not payload.title else "url")
        async with get_session() as session:
            existing = (await session.exec(select(ContentPage).where(ContentPage.url == payload.url))).first()
            if existing:
                raise ValidationError("A page with this URL already exists", field="url")
            page = ContentPage(
                title=payload.title,
                url=payload.url,
                primary_topic=payload.primary_topic,
                location_focus=payload.location_focus or "none",
                status=payload.status or "draft",
                notes=payload.notes,
            )
            session.add(page)
            await session.commit()
        return page

    async def list_pages(self) -> List[ContentPage]:
        async with get_session() as session:
            statement = select(ContentPage).order_by(ContentPage.last_reviewed.asc(), ContentPage.created_at.asc())
            return list((await session.exec(statement)).all())

    async def get(self, page_id: str) -> ContentPage:
        async with get_session() as session:
            page = await session.get(ContentPage, page_id)
        if not page:
            raise NotFoundError("Page not found")
        return page

    async def update(self, page_id: str, changes: Dict[str, Any]) -> ContentPage:
        """Apply ``changes`` (already restricted to keys the caller sent)."""
        for required in ("title", "url"):
            if required in changes and not changes[required]:
                raise ValidationError(f"{required.capitalize()} cannot be empty", field=required)
        async with get_session() as session:
            page = await session.get(ContentPage, page_id)
            if not page:
                raise NotFoundError("Page not found")
            for key, value in changes.items():
                setattr(page, key, value)
            page.updated_at = datetime.utcnow()
            session.add(page)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ValidationError("A page with this URL already exists", field="url") from exc
        return page

    async def delete(self, page_id: str) -> None:
        async with get_session() as session:
            page = await session.get(ContentPage, page_id)
            if not page:
                raise NotFoundError("Page not found")
            await session.delete(page)
            await session.commit()

    async def track(self, url: str, event: str = "page_view") -> str:
        """Count a view or CTA click for ``url``; unknown pages are auto-created.

        Events other than ``cta_click`` count as page views.

        Returns the id of the page that was counted.
        """
        counter = COUNTERS.get(event, COUNTERS["page_view"])
        normalized = normalize_url(url)
        conditions = [ContentPage.url == normalized, ContentPage.url == f"{normalized}/"]
        if normalized != "/":
            # absolute URLs stored for a tracked path
            conditions.append(ContentPage.url.endswith(normalized, autoescape=True))

        async with get_session() as session:
            page = (await session.exec(select(ContentPage).where(or_(*conditions)))).first()
            if page:
                column = getattr(ContentPage, counter)
                await session.execute(
                    update(ContentPage).where(ContentPage.id == page.id).values({counter: column + 1})
                )
                await session.commit()
                return page.id

            page = ContentPage(url=normalized, title="Auto-tracked page", status="published")
            setattr(page, counter, 1)
            session.add(page)
            await session.commit()
            logger.info("Auto-created content page for %s", normalized)
            return page.id

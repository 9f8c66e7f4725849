from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy import func, select

from enablr.db import ChatbotMessage, ContentPage, Lead, get_session

TOP_PAGES_LIMIT = 10
RECENT_CONVERSATIONS_LIMIT = 10
PREVIEW_LENGTH = 100


async def dashboard_summary() -> Dict[str, Any]:
    async with get_session() as session:
        pages = (
            await session.execute(select(ContentPage).order_by(ContentPage.page_views.desc()))
        ).scalars().all()

        lead_sources = (
            await session.execute(
                select(Lead.source, func.count(Lead.id))
                .group_by(Lead.source)
                .order_by(func.count(Lead.id).desc())
            )
        ).all()
        total_leads = int(await session.scalar(select(func.count(Lead.id))) or 0)

    total_views = sum(page.page_views or 0 for page in pages)
    total_clicks = sum(page.cta_clicks or 0 for page in pages)
    total_pages = len(pages)

    return {
        "total_pages": total_pages,
        "total_views": total_views,
        "total_cta_clicks": total_clicks,
        "avg_views_per_page": round(total_views / total_pages, 2) if total_pages else 0.0,
        "top_pages": [
            {
                "id": page.id,
                "title": page.title,
                "url": page.url,
                "views": page.page_views or 0,
                "clicks": page.cta_clicks or 0,
            }
            for page in pages[:TOP_PAGES_LIMIT]
        ],
        "lead_sources": [{"source": source, "count": count} for source, count in lead_sources],
        "total_leads": total_leads,
    }


def _preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return f"{text[:PREVIEW_LENGTH]}..."
    return text


async def chatbot_summary(days: int = 7) -> Dict[str, Any]:
    since = datetime.utcnow() - timedelta(days=days)
    conversation_count = func.count(func.distinct(ChatbotMessage.conversation_id))

    async with get_session() as session:
        total_conversations = int(await session.scalar(select(conversation_count)) or 0)
        total_messages = int(await session.scalar(select(func.count(ChatbotMessage.id))) or 0)
        user_messages = int(
            await session.scalar(
                select(func.count(ChatbotMessage.id)).where(ChatbotMessage.role == "user")
            )
            or 0
        )
        recent_messages = int(
            await session.scalar(
                select(func.count(ChatbotMessage.id)).where(ChatbotMessage.created_at >= since)
            )
            or 0
        )
        recent_conversations = int(
            await session.scalar(select(conversation_count).where(ChatbotMessage.created_at >= since))
            or 0
        )

        latest = (
            await session.execute(
                select(ChatbotMessage.conversation_id, func.max(ChatbotMessage.created_at).label("last_at"))
                .group_by(ChatbotMessage.conversation_id)
                .order_by(func.max(ChatbotMessage.created_at).desc())
                .limit(RECENT_CONVERSATIONS_LIMIT)
            )
        ).all()

        previews: List[Dict[str, Any]] = []
        for conversation_id, _ in latest:
            first = (
                await session.execute(
                    select(ChatbotMessage)
                    .where(ChatbotMessage.conversation_id == conversation_id)
                    .order_by(ChatbotMessage.created_at.asc())
                    .limit(1)
                )
            ).scalars().first()
            message_count = int(
                await session.scalar(
                    select(func.count(ChatbotMessage.id)).where(
                        ChatbotMessage.conversation_id == conversation_id
                    )
                )
                or 0
            )
            previews.append(
                {
                    "conversation_id": conversation_id,
                    "message_count": message_count,
                    "started_at": first.created_at.isoformat() if first else None,
                    "preview": _preview(first.content) if first else "",
                }
            )

    return {
        "total_conversations": total_conversations,
        "total_messages": total_messages,
        "user_messages": user_messages,
        "recent_conversations": recent_conversations,
        "recent_messages": recent_messages,
        "conversation_previews": previews,
    }

import logging
from datetime import date
from typing import List

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import or_, select

from enablr import monitoring
from enablr.agents.content_analysis import ContentAnalysisAgent
from enablr.db import ContentPage, get_session
from enablr.errors import EnablrError

logger = logging.getLogger(__name__)

CONTENT_REVIEW_JOB_ID = "content-review"


async def review_due_content(agent: ContentAnalysisAgent, *, limit: int = 10) -> List[str]:
    """Re-analyse published pages that were never analysed or are past their review date.

    Returns the ids of the pages that were analysed successfully.
    """
    today = date.today()
    async with get_session() as session:
        page_ids = (
            await session.exec(
                select(ContentPage.id)
                .where(
                    ContentPage.status == "published",
                    or_(
                        ContentPage.ai_generated_at.is_(None),
                        ContentPage.suggested_review_date <= today,
                    ),
                )
                .order_by(ContentPage.page_views.desc())
                .limit(limit)
            )
        ).all()

    analysed: List[str] = []
    for page_id in page_ids:
        try:
            await agent.analyse(page_id)
        except EnablrError as exc:
            monitoring.capture_exception(exc, page_id=page_id, job=CONTENT_REVIEW_JOB_ID)
            continue
        analysed.append(page_id)

    logger.info("Content review analysed %d of %d due pages", len(analysed), len(page_ids))
    return analysed


def schedule_content_review(
    scheduler: AsyncIOScheduler,
    agent: ContentAnalysisAgent,
    trigger: str = "cron",
    **trigger_args,
) -> Job:
    """Register ``review_due_content`` on ``scheduler``; daily at 03:00 by default.

    The coroutine function itself is the job so the scheduler awaits it on
    its own event loop.
    """
    if trigger == "cron" and not trigger_args:
        trigger_args = {"hour": 3, "minute": 0}
    return scheduler.add_job(
        review_due_content,
        trigger,
        args=[agent],
        id=CONTENT_REVIEW_JOB_ID,
        replace_existing=True,
        **trigger_args,
    )

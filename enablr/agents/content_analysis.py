"""SEO/content audit of tracked pages using a text-generation model."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

import pydantic
from pydantic import BaseModel, Field, field_validator

from enablr.db import ContentPage, get_session
from enablr.errors import AnalysisParseError, NotFoundError
from enablr.llm.parsing import CompletionParseError, extract_json_object
from enablr.llm.providers import TextGenerator

logger = logging.getLogger("agent.content_analysis")

ANALYSIS_PROMPT = """You are an SEO and content analyst helping a UK-based AI consultancy (Enablr, based in Birmingham, West Midlands) audit their web pages.

Audit the page described by the user and return:

1. Scores from 0 to 100: overall_score, local_score (how well the page targets Birmingham and the West Midlands) and content_score (clarity, depth and call to action).
2. summary: 3-5 sentences. What is this page about? Who is it for? What action does it encourage?
3. keywords: 5-10 relevant SEO keywords and topics present in the content.
4. strengths and issues: short bullet-style strings.
5. recommendations: concrete actions, most important first.
6. keyword_gaps: keywords the page should target but does not.
7. local_mentions: how many times the page mentions "Birmingham" and "West Midlands".
8. suggested_local_phrases: 3 natural ways to add Birmingham/West Midlands references, or an empty array if location is already well covered.
9. suggested_review_date: when this page should next be reviewed, based on its type (service page, blog, landing page), as an ISO date.

Return valid JSON with exactly this structure:
{
  "overall_score": number,
  "local_score": number,
  "content_score": number,
  "summary": "string",
  "keywords": ["string"],
  "strengths": ["string"],
  "issues": ["string"],
  "recommendations": ["string"],
  "keyword_gaps": ["string"],
  "local_mentions": { "birmingham": number, "west_midlands": number },
  "suggested_local_phrases": ["string"],
  "suggested_review_date": "YYYY-MM-DD"
}"""


class LocalMentions(BaseModel):
    birmingham: int = Field(default=0, ge=0)
    west_midlands: int = Field(default=0, ge=0)


class ContentAnalysis(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    local_score: int = Field(ge=0, le=100)
    content_score: int = Field(ge=0, le=100)
    summary: str
    keywords: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    keyword_gaps: List[str] = Field(default_factory=list)
    local_mentions: LocalMentions = Field(default_factory=LocalMentions)
    suggested_local_phrases: List[str] = Field(default_factory=list)
    suggested_review_date: Optional[date] = None

    @field_validator("overall_score", "local_score", "content_score", mode="before")
    @classmethod
    def _round_scores(cls, value):
        if isinstance(value, float):
            return round(value)
        return value


@dataclass
class AnalysisOutcome:
    analysis: ContentAnalysis
    page: ContentPage


def build_digest(page: ContentPage) -> str:
    return "\n".join(
        [
            f"Page Title: {page.title}",
            f"URL: {page.url}",
            f"Primary Topic: {page.primary_topic or 'Not specified'}",
            f"Notes: {page.notes or 'None'}",
        ]
    )


def parse_analysis(text: str) -> ContentAnalysis:
    try:
        return ContentAnalysis.model_validate(extract_json_object(text))
    except (CompletionParseError, pydantic.ValidationError) as exc:
        logger.error("Failed to parse analysis response: %s", (text or "")[:500])
        raise AnalysisParseError(str(exc)) from exc


class ContentAnalysisAgent:
    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator

    async def analyse(self, page_id: str) -> AnalysisOutcome:
        """Run the audit for ``page_id`` and store the result on the page.

        The page is only written once the model output has been parsed, so a
        failed run leaves any previous analysis in place.
        """
        async with get_session() as session:
            page = await session.get(ContentPage, page_id)
            if not page:
                raise NotFoundError("Page not found")
            digest = build_digest(page)

        text = await asyncio.to_thread(
            self.generator.generate,
            f"Analyse this page:\n\n{digest}",
            system=ANALYSIS_PROMPT,
        )
        analysis = parse_analysis(text)

        async with get_session() as session:
            page = await session.get(ContentPage, page_id)
            if not page:
                raise NotFoundError("Page not found")
            now = datetime.utcnow()
            page.ai_analysis = analysis.model_dump(mode="json")
            page.ai_summary = analysis.summary
            page.suggested_keywords = analysis.keywords
            page.suggested_local_phrases = analysis.suggested_local_phrases
            page.has_birmingham_mention = analysis.local_mentions.birmingham > 0
            page.has_west_midlands_mention = analysis.local_mentions.west_midlands > 0
            page.suggested_review_date = analysis.suggested_review_date
            page.ai_generated_at = now
            page.updated_at = now
            session.add(page)
            await session.commit()

        logger.info(
            "content_analysed",
            extra={"analysis": {"page_id": page_id, "overall_score": analysis.overall_score}},
        )
        return AnalysisOutcome(analysis=analysis, page=page)

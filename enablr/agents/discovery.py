"""Lead discovery agent: web search plus model-based qualification of each hit."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

import pydantic
from pydantic import BaseModel, Field, field_validator

from enablr.db import LeadCandidate, get_session
from enablr.errors import UpstreamError
from enablr.integrations.google_search import GoogleSearchClient, SearchResult
from enablr.llm.parsing import CompletionParseError, extract_json_object
from enablr.llm.providers import TextGenerator

logger = logging.getLogger("agent.discovery")

MAX_RESULTS = 5
CANDIDATE_SOURCE = "google_search"

SCORING_PROMPT = """You are a Lead Qualification Researcher for "Enablr", an AI consultancy for non-technical SMEs.
Your goal is to score a business lead based on fit for our services AND find their contact information.

**Our Ideal Profile:**
- Location: Birmingham / West Midlands (Bonus points)
- Size: Small-to-Medium (5-50 staff)
- Type: Non-technical (e.g., Law, Finance, Logistics, Trades, Agencies). NOT tech startups.
- Pain: Admin-heavy, likely paper-based or messy Excel workflows.
- AI Maturity: Low. If they mention "AI Powered" or "Tech First", they are BAD fit.

**Scoring Criteria (1-5):**
5: Perfect fit. Local, non-technical, clearly "human" service business, no AI mentioned.
4: Good fit. Likely non-technical, but maybe outside core location or slightly vague.
3: Unsure. Could be a fit, but snippet is generic.
2: Poor fit. Too large, too corporate, or seemingly tech-savvy.
1: Bad fit. Tech company, software agency, or massive enterprise.

**Input:**
Search Result Snippet: {snippet}
Title: {title}
URL: {url}

**Task:**
Analyze the input.
1. Extract/Guess Industry.
2. Determine Fit Score (1-5).
3. Write a short "Fit Note" (1 sentence justification).
4. Find a contact email:
   - If an email is visible in the snippet, extract it and set email_is_guessed to false.
   - If no email is visible, guess one based on common patterns (info@, hello@, contact@) using the domain from the URL, and set email_is_guessed to true.
   - If you cannot determine an email at all, set contact_email to null.

Return JSON:
{{
  "business_name": "string (extract from title)",
  "industry": "string",
  "fit_score": number,
  "fit_note": "string",
  "location_guess": "string (e.g. Birmingham or Unknown)",
  "contact_email": "string or null",
  "email_is_guessed": boolean
}}"""


class CandidateAssessment(BaseModel):
    business_name: str = Field(min_length=1)
    industry: Optional[str] = None
    fit_score: int = Field(ge=1, le=5)
    fit_note: Optional[str] = None
    location_guess: Optional[str] = None
    contact_email: Optional[str] = None
    email_is_guessed: Optional[bool] = False

    @field_validator("email_is_guessed", mode="before")
    @classmethod
    def _null_flag_is_false(cls, value):
        return False if value is None else value


@dataclass
class DiscoveryRun:
    query: str
    result_count: int
    candidates: List[LeadCandidate] = field(default_factory=list)


def build_query(industry: str, location: str) -> str:
    return f'"{industry}" small business near {location} UK'


def build_prompt(result: SearchResult) -> str:
    return SCORING_PROMPT.format(snippet=result.snippet, title=result.title, url=result.link)


class DiscoveryAgent:
    def __init__(self, search: GoogleSearchClient, generator: TextGenerator) -> None:
        self.search = search
        self.generator = generator

    async def discover(self, industry: str = "General", location: str = "Birmingham") -> DiscoveryRun:
        """Search for local businesses and persist the ones the model could qualify.

        Returns a run with ``result_count == 0`` and no candidates when the
        search comes back empty; nothing is written in that case.
        """
        self.generator.ensure_configured()
        query = build_query(industry, location)
        started = time.perf_counter()

        results = await self.search.search(query)
        logger.info("Search returned %d results for %r", len(results), query)
        if not results:
            return DiscoveryRun(query=query, result_count=0)

        assessed = await asyncio.gather(*(self._assess(result) for result in results[:MAX_RESULTS]))
        candidates = [candidate for candidate in assessed if candidate is not None]

        if candidates:
            async with get_session() as session:
                session.add_all(candidates)
                await session.commit()

        logger.info(
            "discovery_run",
            extra={
                "discovery": {
                    "query": query,
                    "results": len(results),
                    "processed": min(len(results), MAX_RESULTS),
                    "persisted": len(candidates),
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                }
            },
        )
        return DiscoveryRun(query=query, result_count=len(results), candidates=candidates)

    async def _assess(self, result: SearchResult) -> Optional[LeadCandidate]:
        try:
            text = await asyncio.to_thread(self.generator.generate, build_prompt(result))
            assessment = CandidateAssessment.model_validate(extract_json_object(text))
        except (UpstreamError, CompletionParseError, pydantic.ValidationError) as exc:
            logger.warning("Qualification failed for %s: %s", result.link, exc)
            return None

        return LeadCandidate(
            business_name=assessment.business_name,
            website=result.link,
            location=assessment.location_guess,
            industry=assessment.industry,
            contact_email=assessment.contact_email or None,
            email_is_guessed=assessment.email_is_guessed,
            fit_score=assessment.fit_score,
            fit_notes=assessment.fit_note,
            source=CANDIDATE_SOURCE,
            status="new",
        )

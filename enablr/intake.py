"""Inbound lead intake: validation, scoring and create-or-update by email."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from enablr.agents.lead_scoring import score as score_lead
from enablr.db import Lead, LeadEvent, get_session
from enablr.errors import ValidationError
from enablr.schemas import LeadIn

logger = logging.getLogger("enablr.intake")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
INTAKE_SOURCES = ("form", "chatbot", "readiness_check")
DEFAULT_SOURCE = "form"

# Fields a repeat submission may overwrite when it carries a non-empty value.
MUTABLE_FIELDS = (
    "first_name",
    "last_name",
    "company_name",
    "phone",
    "team_size",
    "service_interest",
    "main_challenge",
)


@dataclass
class IntakeResult:
    lead_id: str
    created: bool


def validate_submission(payload: LeadIn) -> str:
    email = payload.email
    if not email or not isinstance(email, str):
        raise ValidationError("Email is required", field="email")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format", field="email")
    return email


class LeadIntakeService:
    async def submit(self, payload: LeadIn) -> IntakeResult:
        """Create a lead for a new email or refresh the existing one.

        Returns:
            IntakeResult: the lead id and whether a new row was created.
        """
        email = validate_submission(payload)
        lead_score = score_lead(payload)
        # scored as sent; only the stored provenance falls back to the default
        source = payload.source or DEFAULT_SOURCE

        async with get_session() as session:
            existing = await self._find(session, email)
            if existing:
                return await self._update(session, existing, payload, lead_score)

            lead = Lead(
                email=email,
                first_name=payload.first_name,
                last_name=payload.last_name,
                company_name=payload.company_name,
                phone=payload.phone,
                team_size=payload.team_size,
                service_interest=payload.service_interest,
                main_challenge=payload.main_challenge,
                source=source,
                lead_score=lead_score,
                status="new",
                readiness_score=payload.readiness_score,
                readiness_answers=payload.readiness_answers,
                chatbot_conversation_id=payload.chatbot_conversation_id,
                chatbot_summary=payload.chatbot_summary,
            )
            try:
                session.add(lead)
                await session.flush()
                session.add(
                    LeadEvent(
                        lead_id=lead.id,
                        event_type="lead_created",
                        event_data={"source": source, "score": lead_score},
                    )
                )
                await session.commit()
            except IntegrityError:
                # another request inserted this email first
                await session.rollback()
                logger.info("Concurrent intake for existing email; applying as update")
                existing = await self._find(session, email)
                if not existing:
                    raise
                return await self._update(session, existing, payload, lead_score)

        logger.info(
            "lead_created",
            extra={"lead": {"id": lead.id, "source": source, "score": lead_score}},
        )
        return IntakeResult(lead_id=lead.id, created=True)

    async def _find(self, session: AsyncSession, email: str) -> Optional[Lead]:
        return (await session.exec(select(Lead).where(Lead.email == email))).first()

    async def _update(
        self,
        session: AsyncSession,
        lead: Lead,
        payload: LeadIn,
        lead_score: int,
    ) -> IntakeResult:
        for field in MUTABLE_FIELDS:
            value = getattr(payload, field)
            if value:
                setattr(lead, field, value)
        lead.lead_score = lead_score
        lead.updated_at = datetime.utcnow()
        session.add(lead)
        await session.commit()
        logger.info("lead_updated", extra={"lead": {"id": lead.id, "score": lead_score}})
        return IntakeResult(lead_id=lead.id, created=False)

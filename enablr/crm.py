"""Admin-side lead management: status changes, notes and candidate promotion."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlmodel import select

from enablr.db import Lead, LeadCandidate, LeadEvent, LeadNote, get_session
from enablr.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger("enablr.crm")

LEAD_STATUSES = ("new", "contacted", "qualified", "won", "archived")
DISCOVERY_SOURCE = "discovery_agent"


@dataclass
class LeadDetail:
    lead: Lead
    notes: List[LeadNote]
    events: List[LeadEvent]


class LeadCRM:
    async def list_leads(self, limit: int = 100) -> List[Lead]:
        async with get_session() as session:
            statement = select(Lead).order_by(Lead.created_at.desc()).limit(limit)
            return list((await session.exec(statement)).all())

    async def get_lead(self, lead_id: str) -> LeadDetail:
        async with get_session() as session:
            lead = await session.get(Lead, lead_id)
            if not lead:
                raise NotFoundError("Lead not found")
            notes = (
                await session.exec(
                    select(LeadNote)
                    .where(LeadNote.lead_id == lead_id)
                    .order_by(LeadNote.created_at.desc())
                )
            ).all()
            events = (
                await session.exec(
                    select(LeadEvent)
                    .where(LeadEvent.lead_id == lead_id)
                    .order_by(LeadEvent.created_at.desc())
                )
            ).all()
        return LeadDetail(lead=lead, notes=list(notes), events=list(events))

    async def update_status(self, lead_id: str, status: str) -> Lead:
        if status not in LEAD_STATUSES:
            raise ValidationError(
                f"Status must be one of: {', '.join(LEAD_STATUSES)}", field="status"
            )
        async with get_session() as session:
            lead = await session.get(Lead, lead_id)
            if not lead:
                raise NotFoundError("Lead not found")
            previous = lead.status
            lead.status = status
            lead.updated_at = datetime.utcnow()
            session.add(lead)
            session.add(
                LeadEvent(
                    lead_id=lead.id,
                    event_type="status_change",
                    event_data={"from": previous, "to": status},
                )
            )
            await session.commit()
        return lead

    async def add_note(self, lead_id: str, note: str) -> LeadNote:
        text = (note or "").strip()
        if not text:
            raise ValidationError("Note is required", field="note")
        async with get_session() as session:
            lead = await session.get(Lead, lead_id)
            if not lead:
                raise NotFoundError("Lead not found")
            entry = LeadNote(lead_id=lead.id, note=text)
            session.add(entry)
            await session.flush()
            session.add(
                LeadEvent(
                    lead_id=lead.id,
                    event_type="note_added",
                    event_data={"note_id": entry.id},
                )
            )
            await session.commit()
        return entry

    async def list_candidates(self, status: Optional[str] = None, limit: int = 100) -> List[LeadCandidate]:
        async with get_session() as session:
            statement = select(LeadCandidate)
            if status:
                statement = statement.where(LeadCandidate.status == status)
            statement = statement.order_by(LeadCandidate.created_at.desc()).limit(limit)
            return list((await session.exec(statement)).all())

    async def promote_candidate(self, candidate_id: str) -> Lead:
        """Copy a discovered candidate into the lead pipeline.

        A candidate is promoted at most once; a second attempt, or a candidate
        whose email already belongs to a lead, raises ``ConflictError``.
        """
        async with get_session() as session:
            candidate = await session.get(LeadCandidate, candidate_id)
            if not candidate:
                raise NotFoundError("Candidate not found")
            if candidate.status == "promoted":
                raise ConflictError("Candidate has already been promoted")

            email = candidate.contact_email or f"pending-{candidate.id}@placeholder.local"
            clash = (await session.exec(select(Lead).where(Lead.email == email))).first()
            if clash:
                raise ConflictError("A lead with this email already exists")

            lead = Lead(
                email=email,
                company_name=candidate.business_name,
                source=DISCOVERY_SOURCE,
                lead_score=candidate.fit_score * 20,
                status="new",
                main_challenge=candidate.fit_notes or None,
            )
            session.add(lead)
            await session.flush()

            candidate.status = "promoted"
            session.add(candidate)
            session.add(
                LeadEvent(
                    lead_id=lead.id,
                    event_type="promoted_from_discovery",
                    event_data={
                        "candidateId": candidate.id,
                        "originalFitScore": candidate.fit_score,
                        "website": candidate.website,
                        "industry": candidate.industry,
                        "location": candidate.location,
                    },
                )
            )
            await session.commit()

        logger.info("candidate_promoted", extra={"candidate": {"id": candidate_id, "lead_id": lead.id}})
        return lead

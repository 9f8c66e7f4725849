from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LeadIn(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    team_size: Optional[str] = None
    service_interest: Optional[str] = None
    main_challenge: Optional[str] = None
    source: Optional[str] = None
    readiness_score: Optional[int] = Field(default=None, ge=0, le=100)
    readiness_answers: Optional[Dict[str, Any]] = None
    chatbot_conversation_id: Optional[str] = None
    chatbot_summary: Optional[str] = None


class LeadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    team_size: Optional[str] = None
    service_interest: Optional[str] = None
    main_challenge: Optional[str] = None
    source: str
    lead_score: int
    status: str
    readiness_score: Optional[int] = None
    readiness_answers: Optional[Dict[str, Any]] = None
    chatbot_conversation_id: Optional[str] = None
    chatbot_summary: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LeadNoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    note: str
    created_at: datetime


class LeadEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_type: str
    event_data: Optional[Dict[str, Any]] = None
    created_at: datetime


class LeadDetailOut(BaseModel):
    lead: LeadOut
    notes: List[LeadNoteOut]
    events: List[LeadEventOut]


class StatusUpdateIn(BaseModel):
    status: str


class NoteIn(BaseModel):
    note: str


class DiscoveryIn(BaseModel):
    industry: str = "General"
    location: str = "Birmingham"


class CandidateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_name: str
    website: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    contact_email: Optional[str] = None
    email_is_guessed: bool
    fit_score: int
    fit_notes: Optional[str] = None
    source: str
    status: str
    created_at: datetime


class ContentPageIn(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    primary_topic: Optional[str] = None
    location_focus: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class ContentPageUpdateIn(BaseModel):
    """Partial update; only keys present in the request body are applied."""

    title: Optional[str] = None
    url: Optional[str] = None
    primary_topic: Optional[str] = None
    location_focus: Optional[str] = None
    status: Optional[str] = None
    last_reviewed: Optional[datetime] = None
    next_review_date: Optional[date] = None
    review_notes: Optional[str] = None
    notes: Optional[str] = None
    page_views: Optional[int] = Field(default=None, ge=0)
    cta_clicks: Optional[int] = Field(default=None, ge=0)


class ContentPageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    title: str
    primary_topic: Optional[str] = None
    location_focus: str
    status: str
    notes: Optional[str] = None
    last_reviewed: Optional[datetime] = None
    next_review_date: Optional[date] = None
    review_notes: Optional[str] = None
    page_views: int
    cta_clicks: int
    ai_summary: Optional[str] = None
    ai_analysis: Optional[Dict[str, Any]] = None
    suggested_keywords: Optional[List[str]] = None
    suggested_local_phrases: Optional[List[str]] = None
    has_birmingham_mention: bool
    has_west_midlands_mention: bool
    suggested_review_date: Optional[date] = None
    ai_generated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TrackIn(BaseModel):
    url: Optional[str] = None
    event: str = "page_view"


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatIn(BaseModel):
    message: Optional[str] = None
    conversationId: Optional[str] = None
    history: List[ChatTurn] = Field(default_factory=list)

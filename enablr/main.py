"""FastAPI application for the Enablr marketing funnel and admin dashboard."""

import logging
import os
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from enablr import analytics, monitoring
from enablr.auth import SupabaseAuthMiddleware
from enablr.db import init_db
from enablr.dependencies import Services, get_services, services_from_env
from enablr.errors import EnablrError
from enablr.jobs import schedule_content_review
from enablr.schemas import (
    CandidateOut,
    ChatIn,
    ContentPageIn,
    ContentPageOut,
    ContentPageUpdateIn,
    DiscoveryIn,
    LeadDetailOut,
    LeadEventOut,
    LeadIn,
    LeadNoteOut,
    LeadOut,
    NoteIn,
    StatusUpdateIn,
    TrackIn,
)

API_PORT = int(os.getenv("API_PORT", "8000"))

monitoring.init_monitoring()
logger = logging.getLogger("enablr.api")

scheduler = AsyncIOScheduler()

app = FastAPI(title="Enablr API")
app.add_middleware(
    SupabaseAuthMiddleware,
    protected_prefixes={"/admin", "/content"},
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EnablrError)
async def enablr_error_handler(request: Request, exc: EnablrError):
    if exc.status_code >= 500:
        monitoring.capture_exception(exc, path=request.url.path, method=request.method)
    body = {"success": False, "error": exc.client_message()}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(body, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    return JSONResponse(
        {
            "success": False,
            "error": first.get("msg", "Invalid request"),
            "field": ".".join(location) or None,
        },
        status_code=400,
    )


@app.on_event("startup")
async def on_startup():
    await init_db()
    if getattr(app.state, "services", None) is None:
        app.state.services = services_from_env()
    services: Services = app.state.services

    enabled = os.getenv("CONTENT_REVIEW_ENABLED", "true").lower() not in {"0", "false", "no"}
    if enabled and services.openai.configured:
        schedule_content_review(scheduler, services.content_analysis)
        if not scheduler.running:
            scheduler.start()


@app.on_event("shutdown")
async def on_shutdown():
    if scheduler.running:
        scheduler.shutdown(wait=False)


@app.get("/healthz")
async def health_check():
    return {"status": "ok"}


@app.post("/leads")
async def submit_lead(payload: LeadIn, services: Services = Depends(get_services)):
    """Accept a booking-form, chatbot or readiness-check submission.

    Args:
        payload: Contact and qualification fields from the site.
        services: Injected funnel components.

    Returns:
        dict: ``leadId`` plus ``updated`` when an existing lead was refreshed.
    """
    result = await services.intake.submit(payload)
    body = {"success": True, "leadId": result.lead_id}
    if not result.created:
        body["updated"] = True
    return body


@app.post("/chat")
async def chat(payload: ChatIn, services: Services = Depends(get_services)):
    """Answer a chat widget message, keeping the last few turns as context."""
    history = [turn.model_dump() for turn in payload.history]
    message = await services.chat.reply(payload.message, payload.conversationId, history)
    return {"message": message}


@app.post("/analytics/track")
async def track_page(payload: TrackIn, services: Services = Depends(get_services)):
    """Count a page view or CTA click; never fails once a URL is supplied."""
    if not payload.url:
        return JSONResponse({"success": False, "error": "URL required", "field": "url"}, status_code=400)
    try:
        await services.content.track(payload.url, payload.event)
    except Exception as exc:
        # tracking must never break the page it instruments
        logger.warning("Analytics tracking failed for %s", payload.url, exc_info=exc)
    return {"success": True}


@app.get("/admin/leads")
async def admin_list_leads(limit: int = 100, services: Services = Depends(get_services)):
    leads = await services.crm.list_leads(limit=limit)
    return {"leads": [LeadOut.model_validate(lead) for lead in leads]}


@app.get("/admin/leads/{lead_id}", response_model=LeadDetailOut)
async def admin_lead_detail(lead_id: str, services: Services = Depends(get_services)):
    detail = await services.crm.get_lead(lead_id)
    return LeadDetailOut(
        lead=LeadOut.model_validate(detail.lead),
        notes=[LeadNoteOut.model_validate(note) for note in detail.notes],
        events=[LeadEventOut.model_validate(event) for event in detail.events],
    )


@app.put("/admin/leads/{lead_id}/status")
async def admin_update_status(
    lead_id: str,
    payload: StatusUpdateIn,
    services: Services = Depends(get_services),
):
    lead = await services.crm.update_status(lead_id, payload.status)
    return {"success": True, "lead": LeadOut.model_validate(lead)}


@app.post("/admin/leads/{lead_id}/notes")
async def admin_add_note(lead_id: str, payload: NoteIn, services: Services = Depends(get_services)):
    note = await services.crm.add_note(lead_id, payload.note)
    return {"success": True, "note": LeadNoteOut.model_validate(note)}


@app.post("/admin/lead-discovery")
async def admin_lead_discovery(payload: DiscoveryIn, services: Services = Depends(get_services)):
    """Search for local businesses and store the ones the model qualified.

    Args:
        payload: Industry and location to search for.
        services: Injected funnel components.

    Returns:
        dict: Persisted candidates, or ``success: false`` when the search was empty.
    """
    run = await services.discovery.discover(payload.industry, payload.location)
    if run.result_count == 0:
        return {"success": False, "error": "No results found for this search."}
    return {
        "success": True,
        "count": len(run.candidates),
        "leads": [CandidateOut.model_validate(candidate) for candidate in run.candidates],
    }


@app.get("/admin/lead-candidates")
async def admin_list_candidates(
    status: Optional[str] = None,
    services: Services = Depends(get_services),
):
    candidates = await services.crm.list_candidates(status=status)
    return {"candidates": [CandidateOut.model_validate(candidate) for candidate in candidates]}


@app.post("/admin/lead-candidates/{candidate_id}/promote")
async def admin_promote_candidate(candidate_id: str, services: Services = Depends(get_services)):
    lead = await services.crm.promote_candidate(candidate_id)
    return {
        "success": True,
        "lead": LeadOut.model_validate(lead),
        "message": "Candidate promoted to pipeline",
    }


@app.get("/admin/analytics")
async def admin_analytics():
    return await analytics.dashboard_summary()


@app.get("/admin/chatbot-analytics")
async def admin_chatbot_analytics():
    return await analytics.chatbot_summary()


@app.get("/content")
async def list_content(services: Services = Depends(get_services)):
    pages = await services.content.list_pages()
    return [ContentPageOut.model_validate(page) for page in pages]


@app.post("/content")
async def create_content(payload: ContentPageIn, services: Services = Depends(get_services)):
    page = await services.content.create(payload)
    return {"success": True, "id": page.id}


@app.get("/content/{page_id}", response_model=ContentPageOut)
async def get_content(page_id: str, services: Services = Depends(get_services)):
    page = await services.content.get(page_id)
    return ContentPageOut.model_validate(page)


@app.put("/content/{page_id}")
async def update_content(
    page_id: str,
    payload: ContentPageUpdateIn,
    services: Services = Depends(get_services),
):
    page = await services.content.update(page_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "page": ContentPageOut.model_validate(page)}


@app.delete("/content/{page_id}")
async def delete_content(page_id: str, services: Services = Depends(get_services)):
    await services.content.delete(page_id)
    return {"success": True}


@app.post("/content/{page_id}/analyse")
async def analyse_content(page_id: str, services: Services = Depends(get_services)):
    """Run the AI SEO audit for a page and return the stored result."""
    outcome = await services.content_analysis.analyse(page_id)
    return {
        "success": True,
        "analysis": outcome.analysis.model_dump(mode="json"),
        "page": ContentPageOut.model_validate(outcome.page),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=API_PORT)

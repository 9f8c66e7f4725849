"""Process-wide wiring of external clients into the funnel components."""

from dataclasses import dataclass

from starlette.requests import Request

from enablr.agents.chat import ChatAgent
from enablr.agents.content_analysis import ContentAnalysisAgent
from enablr.agents.discovery import DiscoveryAgent
from enablr.content import ContentService
from enablr.crm import LeadCRM
from enablr.integrations.google_search import GoogleSearchClient
from enablr.intake import LeadIntakeService
from enablr.llm.providers import GeminiText, OpenAIChat


@dataclass
class Services:
    openai: OpenAIChat
    intake: LeadIntakeService
    crm: LeadCRM
    content: ContentService
    discovery: DiscoveryAgent
    content_analysis: ContentAnalysisAgent
    chat: ChatAgent


def build_services(
    *,
    openai_client: OpenAIChat,
    gemini_client: GeminiText,
    search_client: GoogleSearchClient,
) -> Services:
    return Services(
        openai=openai_client,
        intake=LeadIntakeService(),
        crm=LeadCRM(),
        content=ContentService(),
        discovery=DiscoveryAgent(search_client, gemini_client),
        content_analysis=ContentAnalysisAgent(openai_client),
        chat=ChatAgent(openai_client),
    )


def services_from_env() -> Services:
    """Construct every external client once, from environment configuration."""
    return build_services(
        openai_client=OpenAIChat.from_env(),
        gemini_client=GeminiText.from_env(),
        search_client=GoogleSearchClient.from_env(),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services

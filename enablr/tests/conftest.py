import json
import os
import threading
from typing import Callable, List, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from enablr import db
from enablr.dependencies import build_services, get_services
from enablr.errors import ConfigurationError
from enablr.integrations.google_search import SearchResult

JWT_SECRET = "test-secret"


class FakeGenerator:
    """Stands in for OpenAIChat/GeminiText.

    Answers come from ``responder(prompt)`` when given, otherwise from the
    ``responses`` queue. Exception instances are raised instead of returned.
    """

    def __init__(
        self,
        responses: Optional[List] = None,
        *,
        responder: Optional[Callable[[str], object]] = None,
        configured: bool = True,
    ) -> None:
        self.responses = list(responses or [])
        self.responder = responder
        self.configured = configured
        self.prompts: List[str] = []
        self.systems: List[Optional[str]] = []
        self.messages: List[list] = []
        self._lock = threading.Lock()

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("fake provider not configured")

    def _next(self, prompt: str):
        with self._lock:
            if self.responder is not None:
                answer = self.responder(prompt)
            else:
                answer = self.responses.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
        self.ensure_configured()
        with self._lock:
            self.prompts.append(prompt)
            self.systems.append(system)
        return self._next(prompt)

    def chat(self, messages, *, max_tokens=None, temperature=None) -> str:
        self.ensure_configured()
        with self._lock:
            self.messages.append(list(messages))
        return self._next(messages[-1]["content"])


class FakeSearch:
    def __init__(self, results: Optional[List[SearchResult]] = None, error: Optional[Exception] = None):
        self.results = list(results or [])
        self.error = error
        self.queries: List[str] = []

    def is_configured(self) -> bool:
        return True

    async def search(self, query: str, *, num: int = 10) -> List[SearchResult]:
        self.queries.append(query)
        if self.error:
            raise self.error
        return list(self.results)


def search_result(index: int) -> SearchResult:
    return SearchResult(
        title=f"Business {index} | Birmingham",
        link=f"https://business{index}.example.co.uk",
        snippet=f"Family-run firm number {index} serving the West Midlands.",
    )


def assessment(
    name: str, fit_score: int = 4, email: Optional[str] = None, guessed: Optional[bool] = True
) -> str:
    body = {
        "business_name": name,
        "industry": "Legal",
        "fit_score": fit_score,
        "fit_note": "Local, non-technical service business.",
        "location_guess": "Birmingham",
        "contact_email": email,
        "email_is_guessed": guessed,
    }
    return f"Here is my assessment:\n```json\n{json.dumps(body)}\n```"


@pytest_asyncio.fixture
async def database(tmp_path):
    db.configure(f"sqlite+aiosqlite:///{tmp_path / 'enablr_test.db'}")
    await db.init_db()
    try:
        yield db
    finally:
        await db.engine.dispose()


@pytest.fixture
def openai_fake():
    return FakeGenerator()


@pytest.fixture
def gemini_fake():
    return FakeGenerator()


@pytest.fixture
def search_fake():
    return FakeSearch()


@pytest.fixture
def services(database, openai_fake, gemini_fake, search_fake):
    return build_services(
        openai_client=openai_fake,
        gemini_client=gemini_fake,
        search_client=search_fake,
    )


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setenv("SUPABASE_JWT_SECRET", JWT_SECRET)
    monkeypatch.delenv("ADMIN_EMAILS", raising=False)
    token = jwt.encode({"sub": "admin-1", "email": "admin@enablr.co.uk"}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(services):
    from enablr.main import app

    app.dependency_overrides[get_services] = lambda: services
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as http:
            yield http
    finally:
        app.dependency_overrides.clear()

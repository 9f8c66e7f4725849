import pytest
from sqlmodel import select

from enablr.agents.discovery import MAX_RESULTS, DiscoveryAgent
from enablr.db import LeadCandidate, get_session
from enablr.errors import ConfigurationError, UpstreamError
from enablr.integrations.google_search import GoogleSearchClient
from enablr.tests.conftest import FakeGenerator, FakeSearch, assessment, search_result

pytestmark = pytest.mark.asyncio


async def _stored_candidates():
    async with get_session() as session:
        return (await session.exec(select(LeadCandidate))).all()


def _responder_by_business(answers):
    def respond(prompt):
        for index, answer in answers.items():
            if f"https://business{index}.example.co.uk" in prompt:
                return answer
        raise AssertionError("unexpected prompt")

    return respond


async def test_unparseable_responses_only_drop_their_item(database):
    search = FakeSearch([search_result(i) for i in range(5)])
    generator = FakeGenerator(
        responder=_responder_by_business(
            {
                0: assessment("Zero Legal"),
                1: "I could not find enough information about this business.",
                2: assessment("Two Logistics", fit_score=5, email="hello@two.example", guessed=False),
                3: "{fit_score: maybe}",
                4: assessment("Four Trades", fit_score=2),
            }
        )
    )

    run = await DiscoveryAgent(search, generator).discover("Legal", "Birmingham")

    assert run.result_count == 5
    assert len(generator.prompts) == 5
    assert sorted(candidate.business_name for candidate in run.candidates) == [
        "Four Trades",
        "Two Logistics",
        "Zero Legal",
    ]
    stored = await _stored_candidates()
    assert len(stored) == 3
    two = next(candidate for candidate in stored if candidate.business_name == "Two Logistics")
    assert two.website == "https://business2.example.co.uk"
    assert two.contact_email == "hello@two.example"
    assert two.email_is_guessed is False
    assert two.fit_score == 5
    assert two.status == "new"


async def test_zero_results_returns_empty_run_without_writes(database):
    search = FakeSearch([])
    generator = FakeGenerator()

    run = await DiscoveryAgent(search, generator).discover("Accounting", "Solihull")

    assert run.result_count == 0
    assert run.candidates == []
    assert search.queries == ['"Accounting" small business near Solihull UK']
    assert generator.prompts == []
    assert await _stored_candidates() == []


async def test_only_first_results_are_scored(database):
    search = FakeSearch([search_result(i) for i in range(8)])
    generator = FakeGenerator(responder=lambda prompt: assessment("Any Business"))

    run = await DiscoveryAgent(search, generator).discover()

    assert run.result_count == 8
    assert len(generator.prompts) == MAX_RESULTS
    assert len(run.candidates) == MAX_RESULTS
    assert all("business7" not in prompt for prompt in generator.prompts)


async def test_upstream_failure_and_out_of_range_scores_are_isolated(database):
    search = FakeSearch([search_result(i) for i in range(3)])
    generator = FakeGenerator(
        responder=_responder_by_business(
            {
                0: UpstreamError("Gemini request failed"),
                1: assessment("Too Good", fit_score=9),
                2: assessment("Kept Ltd", fit_score=3),
            }
        )
    )

    run = await DiscoveryAgent(search, generator).discover()

    assert [candidate.business_name for candidate in run.candidates] == ["Kept Ltd"]
    assert len(await _stored_candidates()) == 1


async def test_unconfigured_model_fails_before_searching(database):
    search = FakeSearch([search_result(1)])
    generator = FakeGenerator(configured=False)

    with pytest.raises(ConfigurationError):
        await DiscoveryAgent(search, generator).discover()

    assert search.queries == []


async def test_missing_search_credentials(database):
    agent = DiscoveryAgent(GoogleSearchClient(None, None), FakeGenerator())

    with pytest.raises(ConfigurationError):
        await agent.discover()


async def test_search_failure_propagates(database):
    search = FakeSearch(error=UpstreamError("Google Search API failed with status 500"))

    with pytest.raises(UpstreamError):
        await DiscoveryAgent(search, FakeGenerator()).discover()

    assert await _stored_candidates() == []


async def test_null_email_flag_keeps_candidate(database):
    search = FakeSearch([search_result(1)])
    generator = FakeGenerator([assessment("No Email Builders", email=None, guessed=None)])

    run = await DiscoveryAgent(search, generator).discover()

    assert [candidate.business_name for candidate in run.candidates] == ["No Email Builders"]
    stored = await _stored_candidates()
    assert len(stored) == 1
    assert stored[0].contact_email is None
    assert stored[0].email_is_guessed is False

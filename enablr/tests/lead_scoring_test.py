from enablr.agents.lead_scoring import score
from enablr.schemas import LeadIn


def test_reference_totals():
    assert (
        score(
            LeadIn(
                source="readiness_check",
                team_size="26-50",
                service_interest="both",
                readiness_score=100,
            )
        )
        == 95
    )
    assert score(LeadIn(source="form")) == 20
    assert score(LeadIn(source="chatbot", team_size="50+")) == 40


def test_team_size_and_interest_points():
    assert score(LeadIn(source="form", team_size="11-25")) == 35
    assert score(LeadIn(source="form", service_interest="build")) == 30
    assert score(LeadIn(source="chatbot", team_size="26-50", service_interest="both")) == 65


def test_readiness_points_are_floored_and_capped():
    assert score(LeadIn(source="readiness_check", readiness_score=0)) == 40
    assert score(LeadIn(source="readiness_check", readiness_score=4)) == 40
    assert score(LeadIn(source="readiness_check", readiness_score=99)) == 59
    assert score(LeadIn(source="readiness_check", readiness_score=100)) == 60


def test_unknown_values_score_nothing():
    assert score(LeadIn(source="newsletter", team_size="1-10", service_interest="training")) == 0
    assert score(LeadIn()) == 0


def test_score_is_deterministic_and_non_negative():
    submission = LeadIn(source="chatbot", team_size="11-25", service_interest="build", readiness_score=37)
    first = score(submission)
    assert first == score(submission)
    assert first == 30 + 15 + 10 + 7
    assert first >= 0

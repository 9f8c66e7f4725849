"""Point-based lead scoring for inbound submissions."""

from typing import Optional, Protocol

SOURCE_POINTS = {
    "readiness_check": 40,
    "chatbot": 30,
    "form": 20,
}

TEAM_SIZE_POINTS = {
    "11-25": 15,
    "26-50": 20,
    "50+": 10,
}

SERVICE_INTEREST_POINTS = {
    "build": 10,
    "both": 15,
}

READINESS_MAX_POINTS = 20


class Submission(Protocol):
    source: Optional[str]
    team_size: Optional[str]
    service_interest: Optional[str]
    readiness_score: Optional[int]


def score(submission: Submission) -> int:
    """Return the additive score for a lead submission.

    Unknown or missing factors contribute nothing. The total is not capped,
    so a strong readiness-check lead can score above 100.
    """
    total = SOURCE_POINTS.get(submission.source or "", 0)
    total += TEAM_SIZE_POINTS.get(submission.team_size or "", 0)
    total += SERVICE_INTEREST_POINTS.get(submission.service_interest or "", 0)
    if submission.readiness_score is not None:
        total += min(READINESS_MAX_POINTS, submission.readiness_score // 5)
    return total

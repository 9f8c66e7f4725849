#!/usr/bin/env python
import asyncio
import random

from faker import Faker

from enablr.content import ContentService
from enablr.db import LeadCandidate, get_session, init_db
from enablr.intake import INTAKE_SOURCES, LeadIntakeService
from enablr.schemas import ContentPageIn, LeadIn

TEAM_SIZES = ["1-10", "11-25", "26-50", "50+"]
SERVICE_INTERESTS = ["training", "build", "both"]
PAGES = [
    ("Home", "/"),
    ("AI Training for Teams", "/services/training"),
    ("Custom AI Automations", "/services/automations"),
    ("AI Readiness Check", "/readiness-check"),
]


async def seed_leads(fake: Faker, intake: LeadIntakeService, total: int) -> None:
    for _ in range(total):
        source = random.choice(INTAKE_SOURCES)
        payload = LeadIn(
            email=fake.unique.company_email(),
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            company_name=fake.company(),
            phone=fake.phone_number(),
            team_size=random.choice(TEAM_SIZES),
            service_interest=random.choice(SERVICE_INTERESTS),
            main_challenge=fake.sentence(nb_words=10),
            source=source,
            readiness_score=random.randint(0, 100) if source == "readiness_check" else None,
        )
        await intake.submit(payload)


async def seed_content(content: ContentService) -> None:
    for title, url in PAGES:
        page = await content.create(ContentPageIn(title=title, url=url, status="published"))
        for _ in range(random.randint(5, 50)):
            await content.track(page.url)


async def seed_candidates(fake: Faker, total: int = 5) -> None:
    async with get_session() as session:
        for _ in range(total):
            domain = fake.domain_name()
            session.add(
                LeadCandidate(
                    business_name=fake.company(),
                    website=f"https://{domain}",
                    location="Birmingham",
                    industry=random.choice(["Legal", "Accounting", "Logistics", "Trades"]),
                    contact_email=f"info@{domain}",
                    email_is_guessed=True,
                    fit_score=random.randint(1, 5),
                    fit_notes=fake.sentence(nb_words=12),
                )
            )
        await session.commit()


async def main(total: int = 20) -> None:
    await init_db()
    fake = Faker("en_GB")
    await seed_leads(fake, LeadIntakeService(), total)
    await seed_content(ContentService())
    await seed_candidates(fake)
    print(f"Seeded {total} demo leads, {len(PAGES)} content pages and 5 lead candidates.")


if __name__ == "__main__":
    asyncio.run(main())

import pytest

from enablr.content import ContentService, normalize_url
from enablr.errors import NotFoundError, ValidationError
from enablr.schemas import ContentPageIn

pytestmark = pytest.mark.asyncio


async def test_normalize_url():
    assert normalize_url("/services/?utm_source=x") == "/services"
    assert normalize_url("/") == "/"
    assert normalize_url("/?ref=nav") == "/"
    assert normalize_url("https://enablr.co.uk/about") == "https://enablr.co.uk/about"


async def test_create_applies_defaults_and_rejects_duplicates(database):
    content = ContentService()

    page = await content.create(ContentPageIn(title="About", url="/about"))
    assert page.status == "draft"
    assert page.location_focus == "none"
    assert page.page_views == 0

    with pytest.raises(ValidationError) as excinfo:
        await content.create(ContentPageIn(title="About again", url="/about"))
    assert excinfo.value.field == "url"

    with pytest.raises(ValidationError):
        await content.create(ContentPageIn(title="", url="/blank"))


async def test_partial_update_only_touches_given_fields(database):
    content = ContentService()
    page = await content.create(ContentPageIn(title="Blog", url="/blog", notes="Weekly posts"))

    updated = await content.update(page.id, {"status": "published"})

    assert updated.status == "published"
    assert updated.title == "Blog"
    assert updated.notes == "Weekly posts"

    with pytest.raises(ValidationError):
        await content.update(page.id, {"title": ""})
    with pytest.raises(NotFoundError):
        await content.update("missing", {"status": "published"})


async def test_update_to_taken_url_is_rejected(database):
    content = ContentService()
    await content.create(ContentPageIn(title="One", url="/one"))
    second = await content.create(ContentPageIn(title="Two", url="/two"))

    with pytest.raises(ValidationError):
        await content.update(second.id, {"url": "/one"})

    assert (await content.get(second.id)).url == "/two"


async def test_delete(database):
    content = ContentService()
    page = await content.create(ContentPageIn(title="Old", url="/old"))

    await content.delete(page.id)

    with pytest.raises(NotFoundError):
        await content.get(page.id)


async def test_track_increments_matching_page(database):
    content = ContentService()
    page = await content.create(ContentPageIn(title="Services", url="/services/"))

    assert await content.track("/services?utm_campaign=spring") == page.id
    assert await content.track("/services/") == page.id
    assert await content.track("/services", "cta_click") == page.id

    stored = await content.get(page.id)
    assert stored.page_views == 2
    assert stored.cta_clicks == 1
    assert len(await content.list_pages()) == 1


async def test_track_matches_absolute_stored_url(database):
    content = ContentService()
    page = await content.create(ContentPageIn(title="Contact", url="https://enablr.co.uk/contact"))

    assert await content.track("/contact") == page.id
    assert (await content.get(page.id)).page_views == 1


async def test_track_does_not_match_other_pages_by_substring(database):
    content = ContentService()
    blog = await content.create(ContentPageIn(title="Blog", url="/blog/ai-for-accountants"))

    page_id = await content.track("/blog")

    assert page_id != blog.id
    assert (await content.get(blog.id)).page_views == 0


async def test_track_auto_creates_unknown_page(database):
    content = ContentService()

    page_id = await content.track("/new-landing/?utm=ad", "cta_click")

    page = await content.get(page_id)
    assert page.url == "/new-landing"
    assert page.title == "Auto-tracked page"
    assert page.status == "published"
    assert page.cta_clicks == 1
    assert page.page_views == 0

    assert await content.track("/new-landing") == page_id
    assert (await content.get(page_id)).page_views == 1


async def test_unknown_event_counts_as_view(database):
    content = ContentService()
    page = await content.create(ContentPageIn(title="Pricing", url="/pricing"))

    await content.track("/pricing", "scroll_depth")

    stored = await content.get(page.id)
    assert (stored.page_views, stored.cta_clicks) == (1, 0)

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from conftest import create_opportunity
from marketplace.core.status import Status, status_id
from marketplace.schemas.opportunity import OpportunitySearchFilter, OpportunitySearchFilterInfo
from marketplace.services.opportunity_service import Association, OpportunityService

pytestmark = [pytest.mark.db, pytest.mark.asyncio]


@pytest_asyncio.fixture
async def catalog(db, reference_data, admin):
    """
    A small catalog for text search:

    fence    Green, title match, Kenya
    coding   Green, Technology category, English
    workshop Green, Carpentry skill, English + French
    reading  Acme, no links
    painting Green, inactive, title match
    """
    green = reference_data.organizations["green"]
    service = OpportunityService(db)

    fence = await create_opportunity(db, reference_data, admin, title="Fence repair", organization_id=green)
    coding = await create_opportunity(db, reference_data, admin, title="Coding club", organization_id=green)
    workshop = await create_opportunity(db, reference_data, admin, title="Workshop", organization_id=green)
    reading = await create_opportunity(db, reference_data, admin, title="Reading hour")
    painting = await create_opportunity(
        db, reference_data, admin, title="Fence painting", organization_id=green, post_as_active=False
    )

    await service.assign(Association.COUNTRIES, fence.id, [reference_data.countries["ke"]], admin)
    await service.assign(Association.CATEGORIES, coding.id, [reference_data.categories["technology"]], admin)
    await service.assign(Association.LANGUAGES, coding.id, [reference_data.languages["en"]], admin)
    await service.assign(Association.SKILLS, workshop.id, [reference_data.skills["carpentry"]], admin)
    await service.assign(
        Association.LANGUAGES,
        workshop.id,
        [reference_data.languages["en"], reference_data.languages["fr"]],
        admin,
    )

    return {
        "fence": fence.id,
        "coding": coding.id,
        "workshop": workshop.id,
        "reading": reading.id,
        "painting": painting.id,
    }


async def search_titles(db, **fields):
    results = await OpportunityService(db).search(OpportunitySearchFilter(**fields))
    return {item.title for item in results.items}


async def test_empty_filter_returns_everything(db, catalog):
    results = await OpportunityService(db).search(OpportunitySearchFilter())
    assert len(results.items) == 5
    assert results.total_count is None


async def test_empty_id_lists_are_ignored(db, catalog, reference_data):
    assert len(await search_titles(db, type_ids=[], category_ids=[], status_ids=[])) == 5


async def test_duplicate_ids_match_like_single_ids(db, catalog, reference_data):
    technology = reference_data.categories["technology"]
    assert await search_titles(db, category_ids=[technology, technology]) == {"Coding club"}


async def test_organization_and_type_are_combined(db, catalog, reference_data):
    titles = await search_titles(
        db,
        organization_id=reference_data.organizations["acme"],
        type_ids=[reference_data.types["task"]],
    )
    assert titles == {"Reading hour"}

    titles = await search_titles(
        db,
        organization_id=reference_data.organizations["acme"],
        type_ids=[reference_data.types["learning"]],
    )
    assert titles == set()


@pytest.mark.parametrize(
    "value, expected",
    [
        ("fence", {"Fence repair", "Fence painting"}),
        ("ACME", {"Reading hour"}),
        ("technolog", {"Coding club"}),
        ("carpentry", {"Workshop"}),
    ],
)
async def test_value_contains_matches_any_field(db, catalog, value, expected):
    assert await search_titles(db, value_contains=value) == expected


async def test_value_contains_adds_explicit_organization(db, catalog, reference_data):
    titles = await search_titles(db, value_contains="fence", organization_id=reference_data.organizations["acme"])
    assert titles == {"Fence repair", "Fence painting", "Reading hour"}


async def test_organization_scope_bounds_value_contains(db, catalog, reference_data):
    acme = reference_data.organizations["acme"]
    results = await OpportunityService(db).search(
        OpportunitySearchFilter(value_contains="fence", organization_id=acme),
        organization_scope=[acme],
    )
    assert {item.title for item in results.items} == {"Reading hour"}


async def test_value_contains_ignores_explicit_types(db, catalog, reference_data):
    titles = await search_titles(db, value_contains="fence", type_ids=[reference_data.types["learning"]])
    assert titles == {"Fence repair", "Fence painting"}


async def test_status_stays_conjunctive_with_value_contains(db, catalog):
    titles = await search_titles(db, value_contains="fence", status_ids=[status_id(Status.INACTIVE)])
    assert titles == {"Fence painting"}


async def test_languages_and_countries_use_links(db, catalog, reference_data):
    en = reference_data.languages["en"]
    fr = reference_data.languages["fr"]

    assert await search_titles(db, language_ids=[fr]) == {"Workshop"}

    results = await OpportunityService(db).search(OpportunitySearchFilter(language_ids=[en, fr]))
    assert sorted(item.title for item in results.items) == ["Coding club", "Workshop"]

    assert await search_titles(db, country_ids=[reference_data.countries["ke"]]) == {"Fence repair"}


async def test_results_carry_children(db, catalog):
    results = await OpportunityService(db).search(OpportunitySearchFilter(value_contains="carpentry"))
    (item,) = results.items
    assert [skill.name for skill in item.skills] == ["Carpentry"]
    assert [language.name for language in item.languages] == ["English", "French"]
    assert item.categories == []


async def test_pagination_reports_total_count(db, catalog):
    service = OpportunityService(db)

    last_page = await service.search(OpportunitySearchFilter(page_number=3, page_size=2))
    assert last_page.total_count == 5
    assert len(last_page.items) == 1

    pages = [
        await service.search(OpportunitySearchFilter(page_number=page, page_size=2))
        for page in (1, 2, 3)
    ]
    ids = [item.id for page in pages for item in page.items]
    assert len(ids) == len(set(ids)) == 5


async def test_results_are_ordered_newest_first(db, reference_data, admin):
    base = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
    for offset, title in enumerate(["oldest", "middle", "newest"]):
        opportunity = await create_opportunity(db, reference_data, admin, title=title)
        opportunity.date_created = base + timedelta(hours=offset)
    await db.commit()

    results = await OpportunityService(db).search(OpportunitySearchFilter())
    assert [item.title for item in results.items] == ["newest", "middle", "oldest"]


async def test_date_range_covers_whole_days(db, reference_data, admin):
    created = {
        "before": datetime(2026, 1, 9, 23, 59, tzinfo=timezone.utc),
        "morning": datetime(2026, 1, 10, 0, 0, 1, tzinfo=timezone.utc),
        "evening": datetime(2026, 1, 10, 23, 59, 59, tzinfo=timezone.utc),
        "after": datetime(2026, 1, 11, 0, 0, 1, tzinfo=timezone.utc),
    }
    for title, date_created in created.items():
        opportunity = await create_opportunity(db, reference_data, admin, title=title)
        opportunity.date_created = date_created
    await db.commit()

    noon = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
    assert await search_titles(db, start_date=noon, end_date=noon) == {"morning", "evening"}
    assert await search_titles(db, start_date=noon) == {"morning", "evening", "after"}
    assert await search_titles(db, end_date=noon) == {"before", "morning", "evening"}


async def test_public_search_only_returns_active(db, catalog):
    service = OpportunityService(db)

    results = await service.search_info(OpportunitySearchFilterInfo(value_contains="fence"))
    assert [item.title for item in results.items] == ["Fence repair"]
    assert not hasattr(results.items[0], "created_by")

    paged = await service.search_info(OpportunitySearchFilterInfo(page_number=1, page_size=3))
    assert paged.total_count == 4
    assert len(paged.items) == 3


async def test_predicate_shape(db, reference_data):
    builder = OpportunityService(db).search_builder

    empty = await builder.build(OpportunitySearchFilter())
    assert empty.describe() == "and()"

    predicate = await builder.build(
        OpportunitySearchFilter(
            language_ids=[reference_data.languages["en"]],
            status_ids=[status_id(Status.ACTIVE)],
            value_contains="fence",
        )
    )
    assert predicate.describe() == "and(languages, statuses, or(organizations, types, categories, text, skills))"

    predicate = await builder.build(
        OpportunitySearchFilter(
            organization_id=reference_data.organizations["acme"],
            type_ids=[reference_data.types["task"]],
            start_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
    )
    assert predicate.describe() == "and(date_created_from, organizations, types)"

    predicate = await builder.build(
        OpportunitySearchFilter(organization_id=reference_data.organizations["acme"], value_contains="fence"),
        organization_scope=[reference_data.organizations["acme"]],
    )
    assert predicate.describe() == "and(organization_scope, or(organizations, types, categories, text, skills))"

import uuid

import pytest

from conftest import auth_headers, build_request, create_opportunity
from marketplace.core.security import Principal

pytestmark = [pytest.mark.server, pytest.mark.asyncio]

BASE_URL = "/api/v3/opportunity"


def request_json(reference_data, **overrides):
    return build_request(reference_data, **overrides).model_dump(mode="json")


async def test_info_is_public_and_hides_audit_fields(client, db, reference_data, admin):
    opportunity = await create_opportunity(db, reference_data, admin, title="Plant trees")

    response = await client.get(f"{BASE_URL}/{opportunity.id}/info")

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Plant trees"
    assert body["organization"] == "Acme Learning Foundation"
    assert body["categories"] == []
    assert "created_by" not in body
    assert "status" not in body


async def test_public_search(client, db, reference_data, admin):
    await create_opportunity(db, reference_data, admin, title="Plant trees")
    await create_opportunity(db, reference_data, admin, title="Plant shrubs", post_as_active=False)

    response = await client.post(f"{BASE_URL}/info/search", json={"value_contains": "plant"})

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] is None
    assert [item["title"] for item in body["items"]] == ["Plant trees"]


async def test_public_search_rejects_half_pagination(client, reference_data):
    response = await client.post(f"{BASE_URL}/info/search", json={"page_number": 1})
    assert response.status_code == 422


async def test_missing_token_is_unauthorized(client, reference_data):
    response = await client.get(f"{BASE_URL}/category")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"
    assert response.headers["www-authenticate"] == "Bearer"


async def test_invalid_token_is_unauthorized(client, reference_data):
    response = await client.get(f"{BASE_URL}/category", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


async def test_token_without_roles_is_forbidden(client, reference_data):
    response = await client.get(f"{BASE_URL}/category", headers=auth_headers(Principal(username="visitor")))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


async def test_lookup_lists_are_sorted(client, reference_data, admin):
    headers = auth_headers(admin)

    categories = await client.get(f"{BASE_URL}/category", headers=headers)
    statuses = await client.get(f"{BASE_URL}/status", headers=headers)

    assert [item["name"] for item in categories.json()] == ["Agriculture", "Technology"]
    assert [item["name"] for item in statuses.json()] == ["Active", "Deleted", "Expired", "Inactive"]


async def test_opportunity_lifecycle(client, reference_data, admin):
    headers = auth_headers(admin)
    technology = str(reference_data.categories["technology"])
    agriculture = str(reference_data.categories["agriculture"])

    created = await client.post(
        BASE_URL,
        json=request_json(reference_data, title="Plant trees", post_as_active=False, keywords=["trees"]),
        headers=headers,
    )
    assert created.status_code == 200
    opportunity = created.json()
    assert opportunity["status"] == "Inactive"
    assert opportunity["created_by"] == admin.username
    assert opportunity["keywords"] == ["trees"]
    opportunity_id = opportunity["id"]

    activated = await client.patch(f"{BASE_URL}/{opportunity_id}/Active", headers=headers)
    assert activated.status_code == 200
    assert activated.json()["status"] == "Active"

    assigned = await client.put(
        f"{BASE_URL}/{opportunity_id}/assign/categories",
        json=[technology, agriculture, technology],
        headers=headers,
    )
    assert assigned.status_code == 200
    assert [item["name"] for item in assigned.json()["categories"]] == ["Agriculture", "Technology"]

    removed = await client.request(
        "DELETE",
        f"{BASE_URL}/{opportunity_id}/remove/categories",
        json=[agriculture],
        headers=headers,
    )
    assert removed.status_code == 200
    assert [item["name"] for item in removed.json()["categories"]] == ["Technology"]

    fetched = await client.get(f"{BASE_URL}/{opportunity_id}", headers=headers)
    assert fetched.status_code == 200
    assert [item["name"] for item in fetched.json()["categories"]] == ["Technology"]

    deleted = await client.patch(f"{BASE_URL}/{opportunity_id}/Deleted", headers=headers)
    assert deleted.json()["status"] == "Deleted"


async def test_duplicate_title_is_a_bad_request(client, db, reference_data, admin):
    await create_opportunity(db, reference_data, admin, title="Plant trees")

    response = await client.post(BASE_URL, json=request_json(reference_data, title="Plant trees"), headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_unknown_opportunity_is_not_found(client, reference_data, admin):
    response = await client.get(f"{BASE_URL}/{uuid.uuid4()}", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ARGUMENT_OUT_OF_RANGE"


async def test_invalid_transition_is_a_conflict(client, db, reference_data, admin):
    opportunity = await create_opportunity(db, reference_data, admin)

    response = await client.patch(f"{BASE_URL}/{opportunity.id}/Expired", headers=auth_headers(admin))

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "INVALID_OPERATION"
    assert error["details"] == {"current_status": "Active", "requested_status": "Expired"}


async def test_unknown_association_is_rejected(client, db, reference_data, admin):
    opportunity = await create_opportunity(db, reference_data, admin)

    response = await client.put(
        f"{BASE_URL}/{opportunity.id}/assign/colours",
        json=[str(uuid.uuid4())],
        headers=auth_headers(admin),
    )
    assert response.status_code == 422


async def test_organization_admin_scope(client, db, reference_data, admin, acme_admin):
    headers = auth_headers(acme_admin)
    green = str(reference_data.organizations["green"])
    acme = str(reference_data.organizations["acme"])
    foreign = await create_opportunity(db, reference_data, admin, organization_id=reference_data.organizations["green"])
    own = await create_opportunity(db, reference_data, admin, title="Acme reading hour")

    response = await client.post(BASE_URL, json=request_json(reference_data, organization_id=green), headers=headers)
    assert response.status_code == 403

    response = await client.get(f"{BASE_URL}/{foreign.id}", headers=headers)
    assert response.status_code == 403

    response = await client.get(f"{BASE_URL}/{own.id}", headers=headers)
    assert response.status_code == 200

    response = await client.post(f"{BASE_URL}/search", json={}, headers=headers)
    assert response.status_code == 403

    response = await client.post(f"{BASE_URL}/search", json={"organization_id": green}, headers=headers)
    assert response.status_code == 403

    response = await client.post(
        f"{BASE_URL}/search",
        json={"organization_id": acme, "page_number": 1, "page_size": 10},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 1
    assert [item["title"] for item in body["items"]] == ["Acme reading hour"]


async def test_organization_admin_search_stays_in_scope(client, db, reference_data, admin, acme_admin):
    acme = str(reference_data.organizations["acme"])
    await create_opportunity(db, reference_data, admin, title="Fence repair", organization_id=reference_data.organizations["green"])
    await create_opportunity(db, reference_data, admin, title="Acme reading hour")

    response = await client.post(
        f"{BASE_URL}/search",
        json={"organization_id": acme, "value_contains": "fence"},
        headers=auth_headers(acme_admin),
    )

    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["title"] for item in items] == ["Acme reading hour"]
    assert {item["organization_id"] for item in items} == {acme}


async def test_health(client, reference_data):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["api_ok"] is True
    assert body["db_ok"] is True
    assert body["alembic_head_ok"] is False
    assert body["statuses_ok"] is True
    assert body["status_problems"] == []


async def test_health_reports_missing_statuses(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["db_ok"] is True
    assert body["statuses_ok"] is False
    assert len(body["status_problems"]) == 4

"""Tests for asset listing, submission and moderation."""
import pytest

from app.models.asset import AssetStatus, AssetTag
from app.models.category import Category
from app.models.user import UserRole
from conftest import auth_headers, days_ago, make_asset, make_payment, make_user


@pytest.fixture
async def author(test_db):
    return await make_user(test_db, role=UserRole.AUTHOR, name="Author")


@pytest.mark.asyncio
async def test_listing_filters_sorts_and_paginates(client, test_db, author):
    for i in range(23):
        await make_asset(test_db, author, price=10.0 + i, title=f"In range {i}", created_at=days_ago(i))
    await make_asset(test_db, author, price=60.0, title="Too expensive")
    await make_asset(test_db, author, price=5.0, title="Too cheap")
    await make_asset(test_db, author, price=20.0, title="Waiting", status=AssetStatus.PENDING_REVIEW)
    await make_asset(test_db, author, price=20.0, title="Refused", status=AssetStatus.REJECTED)

    response = await client.get(
        "/api/assets",
        params={
            "status": "approved",
            "minPrice": "10",
            "maxPrice": "50",
            "sort": "-createdAt",
            "page": "2",
            "limit": "5",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["meta"] == {"page": 2, "limit": 5, "total": 23, "totalPages": 5, "hasMore": True}
    assert [a["title"] for a in body["data"]] == [f"In range {i}" for i in range(5, 10)]


@pytest.mark.asyncio
async def test_pending_assets_are_hidden_from_public_listing(client, test_db, author):
    await make_asset(test_db, author, title="Live")
    await make_asset(test_db, author, title="Waiting", status=AssetStatus.PENDING_REVIEW)

    response = await client.get("/api/assets")

    assert response.json()["meta"]["total"] == 1
    assert response.json()["data"][0]["title"] == "Live"

    response = await client.get("/api/assets/my-assets", headers=auth_headers(author))
    assert response.json()["meta"]["total"] == 2


@pytest.mark.asyncio
async def test_tag_filter_requires_every_tag(client, test_db, author):
    await make_asset(test_db, author, title="Both", tags=[AssetTag(name="nature"), AssetTag(name="city")])
    await make_asset(test_db, author, title="One", tags=[AssetTag(name="nature")])

    response = await client.get("/api/assets", params={"tags": "Nature,City"})

    assert [a["title"] for a in response.json()["data"]] == ["Both"]
    assert sorted(response.json()["data"][0]["tags"]) == ["city", "nature"]


@pytest.mark.asyncio
async def test_category_filter_and_search(client, test_db, author):
    textures = Category(name="Textures", slug="textures", sub_categories=[])
    test_db.add(textures)
    await test_db.commit()
    await make_asset(test_db, author, title="Rusty metal", categories=[textures])
    await make_asset(test_db, author, title="Sunset beach")

    response = await client.get("/api/assets", params={"categories": textures.uuid})
    assert [a["title"] for a in response.json()["data"]] == ["Rusty metal"]

    response = await client.get("/api/assets", params={"searchTerm": "sunset"})
    assert [a["title"] for a in response.json()["data"]] == ["Sunset beach"]


@pytest.mark.asyncio
async def test_field_projection(client, test_db, author):
    await make_asset(test_db, author, title="Projected")

    response = await client.get("/api/assets", params={"fields": "title"})

    assert set(response.json()["data"][0]) == {"uuid", "title"}


@pytest.mark.asyncio
async def test_inverted_price_range_is_rejected(client):
    response = await client.get("/api/assets", params={"minPrice": "50", "maxPrice": "10"})

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_only_authors_can_submit(client, test_db, author):
    subscriber = await make_user(test_db)
    payload = {
        "title": "Mountain Lake",
        "assetType": "Photo",
        "isPremium": True,
        "price": 25,
        "tags": ["Lake", "lake ", "Mountains"],
    }

    response = await client.post("/api/assets", json=payload, headers=auth_headers(subscriber))
    assert response.status_code == 403

    response = await client.post("/api/assets", json=payload, headers=auth_headers(author))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "pending_review"
    assert data["slug"] == "mountain-lake"
    assert data["assetType"] == "photo"
    assert data["tags"] == ["lake", "mountains"]
    assert data["authorId"] == author.uuid


@pytest.mark.asyncio
async def test_discount_above_price_is_invalid(client, author):
    payload = {"title": "Bad", "assetType": "photo", "price": 10, "discountPrice": 20}

    response = await client.post("/api/assets", json=payload, headers=auth_headers(author))

    assert response.status_code == 422
    assert response.json()["message"] == "Validation error"


@pytest.mark.asyncio
async def test_only_owner_can_update(client, test_db, author):
    asset = await make_asset(test_db, author, price=10.0)
    other = await make_user(test_db, role=UserRole.AUTHOR)

    response = await client.patch(f"/api/assets/{asset.uuid}", json={"price": 99}, headers=auth_headers(other))
    assert response.status_code == 403

    response = await client.patch(
        f"/api/assets/{asset.uuid}",
        json={"price": 15.5, "tags": ["Winter"]},
        headers=auth_headers(author),
    )
    assert response.status_code == 200
    assert response.json()["data"]["price"] == 15.5
    assert response.json()["data"]["tags"] == ["winter"]


@pytest.mark.asyncio
async def test_admin_approves_asset(client, test_db, author):
    asset = await make_asset(test_db, author, status=AssetStatus.PENDING_REVIEW)
    admin = await make_user(test_db, role=UserRole.ADMIN)

    response = await client.patch(
        f"/api/assets/{asset.uuid}/status", json={"status": "approved"}, headers=auth_headers(author)
    )
    assert response.status_code == 403

    response = await client.patch(
        f"/api/assets/{asset.uuid}/status", json={"status": "approved"}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "approved"

    response = await client.patch(
        f"/api/assets/{asset.uuid}/status", json={"status": "approved"}, headers=auth_headers(admin)
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot update an approved asset"


@pytest.mark.asyncio
async def test_rejected_asset_status_is_final(client, test_db, author):
    asset = await make_asset(test_db, author, status=AssetStatus.REJECTED)
    admin = await make_user(test_db, role=UserRole.ADMIN)

    response = await client.patch(
        f"/api/assets/{asset.uuid}/status", json={"status": "approved"}, headers=auth_headers(admin)
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot update a rejected asset"


@pytest.mark.asyncio
async def test_delete_asset(client, test_db, author):
    sold = await make_asset(test_db, author, title="Sold")
    unsold = await make_asset(test_db, author, title="Unsold")
    buyer = await make_user(test_db)
    await make_payment(test_db, buyer, sold)

    response = await client.delete(f"/api/assets/{sold.uuid}", headers=auth_headers(author))
    assert response.status_code == 409

    unsold_id = unsold.uuid
    response = await client.delete(f"/api/assets/{unsold_id}", headers=auth_headers(author))
    assert response.status_code == 200

    response = await client.get(f"/api/assets/{unsold_id}")
    assert response.status_code == 404
    assert response.json()["message"] == "Asset not found"


@pytest.mark.asyncio
@pytest.mark.parametrize("page", ["1e20", "99999999999999999999"])
async def test_huge_page_returns_an_empty_page(client, test_db, author, page):
    await make_asset(test_db, author, title="Only one")

    response = await client.get("/api/assets", params={"page": page})

    assert response.status_code == 200
    assert response.json()["data"] == []
    assert response.json()["meta"]["total"] == 1
    assert response.json()["meta"]["hasMore"] is False

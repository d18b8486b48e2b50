"""Tests for asset reviews."""
import pytest

from app.models.asset_stats import AssetDownload
from app.models.user import UserRole
from conftest import auth_headers, make_asset, make_user

COMMENT = "Crisp detail and great colours."


@pytest.fixture
async def reviewed(test_db):
    author = await make_user(test_db, role=UserRole.AUTHOR, name="Author")
    buyer = await make_user(test_db, name="Buyer")
    asset = await make_asset(test_db, author)
    test_db.add(AssetDownload(asset_id=asset.uuid, user_id=buyer.uuid))
    await test_db.commit()
    return {"author": author, "buyer": buyer, "asset": asset, "headers": auth_headers(buyer)}


async def _review(client, reviewed, rating=5):
    return await client.post(
        "/api/reviews",
        json={"assetId": reviewed["asset"].uuid, "rating": rating, "comment": COMMENT},
        headers=reviewed["headers"],
    )


@pytest.mark.asyncio
async def test_downloader_can_review_once(client, reviewed):
    response = await _review(client, reviewed)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["rating"] == 5
    assert data["isEdited"] is False
    assert data["buyer"] == {"uuid": reviewed["buyer"].uuid, "name": "Buyer"}

    response = await _review(client, reviewed)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_review_requires_download_or_subscription(client, test_db, reviewed):
    stranger = await make_user(test_db)

    response = await client.post(
        "/api/reviews",
        json={"assetId": reviewed["asset"].uuid, "rating": 4, "comment": COMMENT},
        headers=auth_headers(stranger),
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_rating_bounds(client, reviewed):
    response = await _review(client, reviewed, rating=6)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_edit_marks_review_edited(client, test_db, reviewed):
    review_id = (await _review(client, reviewed)).json()["data"]["uuid"]
    other = await make_user(test_db)

    response = await client.patch(f"/api/reviews/{review_id}", json={"rating": 3}, headers=auth_headers(other))
    assert response.status_code == 403

    response = await client.patch(f"/api/reviews/{review_id}", json={"rating": 3}, headers=reviewed["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["rating"] == 3
    assert response.json()["data"]["isEdited"] is True


@pytest.mark.asyncio
async def test_only_asset_author_replies(client, test_db, reviewed):
    review_id = (await _review(client, reviewed)).json()["data"]["uuid"]
    other_author = await make_user(test_db, role=UserRole.AUTHOR)

    response = await client.post(
        f"/api/reviews/{review_id}/reply", json={"reply": "Thanks!"}, headers=auth_headers(other_author)
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/reviews/{review_id}/reply", json={"reply": "Thanks!"}, headers=auth_headers(reviewed["author"])
    )
    assert response.status_code == 200
    assert response.json()["data"]["authorReply"] == "Thanks!"
    assert response.json()["data"]["repliedAt"] is not None


@pytest.mark.asyncio
async def test_listings(client, reviewed):
    await _review(client, reviewed, rating=2)
    asset_id = reviewed["asset"].uuid

    response = await client.get(f"/api/reviews/asset/{asset_id}")
    assert response.json()["meta"]["total"] == 1

    response = await client.get(f"/api/reviews/asset/{asset_id}", params={"minRating": "4"})
    assert response.json()["meta"]["total"] == 0

    response = await client.get("/api/reviews/author/my-reviews", headers=auth_headers(reviewed["author"]))
    assert [r["assetId"] for r in response.json()["data"]] == [asset_id]


@pytest.mark.asyncio
async def test_delete_review(client, reviewed):
    review_id = (await _review(client, reviewed)).json()["data"]["uuid"]

    response = await client.delete(f"/api/reviews/{review_id}", headers=reviewed["headers"])
    assert response.status_code == 200

    response = await client.get(f"/api/reviews/{review_id}")
    assert response.status_code == 404

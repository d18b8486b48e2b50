"""Tests for asset view, like and download counters."""
import uuid

import pytest
from sqlalchemy import delete, false, select

from app.models.asset_stats import AssetDownload, AssetLike, AssetStats
from app.models.user import UserRole
from app.services import asset_stats as asset_stats_service
from conftest import auth_headers, make_asset, make_payment, make_user


@pytest.fixture
async def listing(test_db):
    author = await make_user(test_db, role=UserRole.AUTHOR)
    buyer = await make_user(test_db)
    asset = await make_asset(test_db, author, price=25.0, is_premium=True)
    # Plain values: a rolled-back duplicate insert expires every instance in the shared session
    return {"asset": asset, "asset_id": asset.uuid, "buyer": buyer, "headers": auth_headers(buyer)}


@pytest.mark.asyncio
async def test_views_are_counted_without_login(client, listing):
    body = {"assetId": listing["asset_id"]}

    await client.post("/api/asset-stats/view", json=body)
    response = await client.post("/api/asset-stats/view", json=body)

    assert response.status_code == 200
    assert response.json()["data"] == {"assetId": listing["asset_id"], "views": 2}


@pytest.mark.asyncio
async def test_view_of_unknown_asset(client):
    response = await client.post("/api/asset-stats/view", json={"assetId": str(uuid.uuid4())})

    assert response.status_code == 404
    assert response.json()["message"] == "Asset not found"


@pytest.mark.asyncio
async def test_like_toggles(client, listing):
    body = {"assetId": listing["asset_id"]}

    response = await client.post("/api/asset-stats/like", json=body, headers=listing["headers"])
    assert response.json()["message"] == "Asset liked"
    assert response.json()["data"]["liked"] is True
    assert response.json()["data"]["likes"] == 1

    response = await client.post("/api/asset-stats/like", json=body, headers=listing["headers"])
    assert response.json()["message"] == "Asset unliked"
    assert response.json()["data"]["likes"] == 0


@pytest.mark.asyncio
async def test_like_requires_login(client, listing):
    response = await client.post("/api/asset-stats/like", json={"assetId": listing["asset_id"]})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_paid_asset_download_requires_purchase(client, test_db, listing):
    body = {"assetId": listing["asset_id"]}

    response = await client.post("/api/asset-stats/download", json=body, headers=listing["headers"])
    assert response.status_code == 403

    await make_payment(test_db, listing["buyer"], listing["asset"])
    response = await client.post("/api/asset-stats/download", json=body, headers=listing["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["downloads"] == 1
    assert response.json()["data"]["firstDownload"] is True


@pytest.mark.asyncio
async def test_repeat_downloads_count_once(client, test_db):
    author = await make_user(test_db, role=UserRole.AUTHOR)
    free = await make_asset(test_db, author, price=0.0, is_premium=False)
    asset_id = free.uuid
    first_user = auth_headers(await make_user(test_db))
    second_user = auth_headers(await make_user(test_db))
    body = {"assetId": asset_id}

    await client.post("/api/asset-stats/download", json=body, headers=first_user)
    response = await client.post("/api/asset-stats/download", json=body, headers=first_user)
    assert response.json()["data"] == {"assetId": asset_id, "downloads": 1, "firstDownload": False}

    response = await client.post("/api/asset-stats/download", json=body, headers=second_user)
    assert response.json()["data"]["downloads"] == 2


@pytest.mark.asyncio
async def test_stats_report_caller_flags(client, listing):
    body = {"assetId": listing["asset_id"]}
    await client.post("/api/asset-stats/like", json=body, headers=listing["headers"])

    response = await client.get(f"/api/asset-stats/{listing['asset_id']}", headers=listing["headers"])
    data = response.json()["data"]
    assert data["likes"] == 1
    assert data["isLikedByUser"] is True
    assert data["isDownloadedByUser"] is False

    response = await client.get(f"/api/asset-stats/{listing['asset_id']}")
    assert response.json()["data"]["isLikedByUser"] is False


async def _counters(db, asset_id):
    result = await db.execute(
        select(AssetStats.likes, AssetStats.downloads).where(AssetStats.asset_id == asset_id)
    )
    return tuple(result.one())


@pytest.mark.asyncio
async def test_download_recorded_by_a_concurrent_request_is_not_counted_again(test_db):
    author = await make_user(test_db, role=UserRole.AUTHOR)
    user = await make_user(test_db)
    asset = await make_asset(test_db, author, price=0.0, is_premium=False)
    asset_id = asset.uuid
    test_db.add(AssetDownload(asset_id=asset_id, user_id=user.uuid))
    await test_db.commit()

    result = await asset_stats_service.record_download(test_db, asset_id, user)

    assert result == {"downloads": 0, "firstDownload": False}
    assert await _counters(test_db, asset_id) == (0, 0)


@pytest.mark.asyncio
async def test_like_inserted_by_a_concurrent_request_is_not_counted_again(test_db, monkeypatch):
    author = await make_user(test_db, role=UserRole.AUTHOR)
    user = await make_user(test_db)
    asset = await make_asset(test_db, author)
    asset_id = asset.uuid
    test_db.add(AssetLike(asset_id=asset_id, user_id=user.uuid))
    await test_db.commit()
    # The other request's like lands between our delete and our insert
    monkeypatch.setattr(asset_stats_service, "delete", lambda model: delete(model).where(false()))

    result = await asset_stats_service.toggle_like(test_db, asset_id, user)

    assert result == {"liked": True, "likes": 0}
    assert await _counters(test_db, asset_id) == (0, 0)

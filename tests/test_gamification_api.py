import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.enums import Role, TrashBinType, WastePhotoStatus
from app.models.waste_photo import WastePhoto
from app.workers.classification_queue import classification_queue

API = settings.API_V1_STR


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_progress_requires_auth(client: AsyncClient):
    resp = await client.get(f"{API}/gamification/progress")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_my_progress(client: AsyncClient, employee, auth_headers):
    employee.experience = 300
    employee.level = 2
    employee.total_points = 40

    resp = await client.get(f"{API}/gamification/progress", headers=auth_headers(employee))

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["level"] == 2
    assert data["total_points"] == 40
    assert data["experience_to_next_level"] == 801 - 300
    assert data["level_progress"] == 3


@pytest.mark.asyncio
async def test_leaderboard_orders_by_points(
    client: AsyncClient, db_session: AsyncSession, company, employee, make_user, company_member, auth_headers
):
    leader = await make_user(full_name="Top Sorter", total_points=500, level=3)
    await company_member(leader, company)
    employee.total_points = 50
    db_session.add(
        WastePhoto(
            company_id=company.id,
            user_id=employee.id,
            image_url="https://img.test/can.jpg",
            status=WastePhotoStatus.CLASSIFIED,
        )
    )
    await db_session.flush()

    resp = await client.get(f"{API}/gamification/companies/{company.id}/leaderboard", headers=auth_headers(employee))

    assert resp.status_code == 200
    entries = resp.json()["data"]
    assert [e["user_id"] for e in entries] == [str(leader.id), str(employee.id)]
    assert [e["rank"] for e in entries] == [1, 2]
    assert entries[1]["classified_photos"] == 1


@pytest.mark.asyncio
async def test_leaderboard_forbidden_for_outsiders(client: AsyncClient, company, make_user, auth_headers):
    outsider = await make_user()
    resp = await client.get(f"{API}/gamification/companies/{company.id}/leaderboard", headers=auth_headers(outsider))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_todays_challenges_empty(client: AsyncClient, company, employee, auth_headers):
    resp = await client.get(f"{API}/gamification/companies/{company.id}/challenges", headers=auth_headers(employee))
    assert resp.status_code == 200
    assert resp.json()["data"] == []


@pytest.mark.asyncio
async def test_company_admin_manages_achievements(
    client: AsyncClient, company, company_admin, employee, auth_headers
):
    payload = {
        "company_id": str(company.id),
        "title": "  Ten photos  ",
        "criterion_type": "TOTAL_PHOTOS",
        "threshold": 10,
        "reward_points": 50,
    }
    created = await client.post(f"{API}/achievements", json=payload, headers=auth_headers(company_admin))
    assert created.status_code == 200
    achievement = created.json()["data"]
    assert achievement["title"] == "Ten photos"

    listed = await client.get(f"{API}/achievements/companies/{company.id}", headers=auth_headers(employee))
    assert listed.status_code == 200
    [row] = listed.json()["data"]
    assert row["progress"] == 0
    assert row["earned"] is False

    deleted = await client.delete(f"{API}/achievements/{achievement['id']}", headers=auth_headers(company_admin))
    assert deleted.status_code == 200
    missing = await client.delete(f"{API}/achievements/{achievement['id']}", headers=auth_headers(company_admin))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_employees_cannot_create_achievements(client: AsyncClient, company, employee, auth_headers):
    payload = {"company_id": str(company.id), "title": "Mine", "criterion_type": "STREAK_DAYS", "threshold": 3}
    resp = await client.post(f"{API}/achievements", json=payload, headers=auth_headers(employee))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_of_another_company_is_forbidden(client: AsyncClient, company, make_user, auth_headers):
    stranger = await make_user(Role.COMPANY_ADMIN)
    payload = {"company_id": str(company.id), "title": "Nope", "criterion_type": "TOTAL_PHOTOS", "threshold": 1}
    resp = await client.post(f"{API}/achievements", json=payload, headers=auth_headers(stranger))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_submit_waste_photo_queues_classification(client: AsyncClient, company, employee, auth_headers):
    payload = {"company_id": str(company.id), "image_url": "https://img.test/peel.jpg"}

    resp = await client.post(f"{API}/waste-photos", json=payload, headers=auth_headers(employee))

    assert resp.status_code == 202
    data = resp.json()["data"]
    assert data["status"] == "PENDING"
    assert data["user_id"] == str(employee.id)
    assert classification_queue.pending() == 1

    fetched = await client.get(f"{API}/waste-photos/{data['id']}", headers=auth_headers(employee))
    assert fetched.status_code == 200


@pytest.mark.asyncio
async def test_submit_waste_photo_requires_membership(client: AsyncClient, company, make_user, auth_headers):
    outsider = await make_user()
    payload = {"company_id": str(company.id), "image_url": "https://img.test/peel.jpg"}
    resp = await client.post(f"{API}/waste-photos", json=payload, headers=auth_headers(outsider))
    assert resp.status_code == 403
    assert classification_queue.pending() == 0


@pytest.mark.asyncio
async def test_only_failed_photos_can_be_reclassified(
    client: AsyncClient, db_session: AsyncSession, company, employee, make_user, auth_headers
):
    admin = await make_user(Role.ADMIN)
    photo = WastePhoto(
        company_id=company.id, user_id=employee.id, image_url="https://img.test/a.jpg", status=WastePhotoStatus.FAILED
    )
    db_session.add(photo)
    await db_session.flush()

    first = await client.post(f"{API}/waste-photos/{photo.id}/reclassify", headers=auth_headers(admin))
    again = await client.post(f"{API}/waste-photos/{photo.id}/reclassify", headers=auth_headers(admin))

    assert first.status_code == 200
    assert first.json()["data"]["status"] == "PENDING"
    assert again.status_code == 409
    assert classification_queue.pending() == 1


@pytest.mark.asyncio
async def test_stale_pending_photo_can_be_reclassified(
    client: AsyncClient, db_session: AsyncSession, company, employee, make_user, auth_headers
):
    admin = await make_user(Role.ADMIN)
    an_hour_ago = datetime.now(timezone.utc) - timedelta(hours=1)
    stale = WastePhoto(
        company_id=company.id,
        user_id=employee.id,
        image_url="https://img.test/stuck.jpg",
        status=WastePhotoStatus.PENDING,
        created_at=an_hour_ago,
        updated_at=an_hour_ago,
    )
    fresh = WastePhoto(
        company_id=company.id, user_id=employee.id, image_url="https://img.test/new.jpg", status=WastePhotoStatus.PENDING
    )
    db_session.add_all([stale, fresh])
    await db_session.flush()

    requeued = await client.post(f"{API}/waste-photos/{stale.id}/reclassify", headers=auth_headers(admin))
    busy = await client.post(f"{API}/waste-photos/{fresh.id}/reclassify", headers=auth_headers(admin))

    assert requeued.status_code == 200
    assert busy.status_code == 409
    assert classification_queue.pending() == 1


@pytest.mark.asyncio
async def test_company_admin_updates_achievement(
    client: AsyncClient, company, company_admin, employee, make_user, auth_headers
):
    payload = {"company_id": str(company.id), "title": "Five photos", "criterion_type": "TOTAL_PHOTOS", "threshold": 5}
    created = (await client.post(f"{API}/achievements", json=payload, headers=auth_headers(company_admin))).json()
    url = f"{API}/achievements/{created['data']['id']}"

    resp = await client.patch(url, json={"threshold": 3, "reward_points": 30}, headers=auth_headers(company_admin))

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["title"] == "Five photos"
    assert data["threshold"] == 3
    assert data["reward_points"] == 30

    assert (await client.patch(url, json={"title": "Mine"}, headers=auth_headers(employee))).status_code == 403
    stranger = await make_user(Role.COMPANY_ADMIN)
    assert (await client.patch(url, json={"title": "Mine"}, headers=auth_headers(stranger))).status_code == 403
    invalid = await client.patch(url, json={"threshold": -1}, headers=auth_headers(company_admin))
    assert invalid.status_code == 422
    assert invalid.json()["success"] is False
    missing = await client.patch(
        f"{API}/achievements/{uuid.uuid4()}", json={"title": "Ghost"}, headers=auth_headers(company_admin)
    )
    assert missing.status_code == 404
    assert missing.json() == {
        "detail": "Achievement not found",
        "message": None,
        "success": False,
        "request_id": missing.headers["X-Request-ID"],
    }


@pytest.mark.asyncio
async def test_earned_streak_achievement_shows_full_progress(
    client: AsyncClient, db_session: AsyncSession, company, company_admin, employee, auth_headers
):
    payload = {"company_id": str(company.id), "title": "Three days", "criterion_type": "STREAK_DAYS", "threshold": 3}
    await client.post(f"{API}/achievements", json=payload, headers=auth_headers(company_admin))
    for day in (1, 2, 3):
        db_session.add(
            WastePhoto(
                company_id=company.id,
                user_id=employee.id,
                image_url=f"https://img.test/{day}.jpg",
                status=WastePhotoStatus.CLASSIFIED,
                recommended_bin_type=TrashBinType.PAPER,
                created_at=datetime(2026, 1, day, 12, tzinfo=timezone.utc),
            )
        )
    await db_session.flush()

    resp = await client.get(f"{API}/achievements/companies/{company.id}", headers=auth_headers(employee))

    [row] = resp.json()["data"]
    assert employee.current_streak == 0
    assert row["progress"] == 100


@pytest.mark.asyncio
async def test_waste_photo_history(
    client: AsyncClient, db_session: AsyncSession, company, company_admin, employee, make_user, company_member,
    auth_headers,
):
    colleague = await company_member(await make_user(full_name="Colleague"), company)
    for day, author in ((1, employee), (2, employee), (3, colleague)):
        db_session.add(
            WastePhoto(
                company_id=company.id,
                user_id=author.id,
                image_url=f"https://img.test/{day}.jpg",
                status=WastePhotoStatus.CLASSIFIED,
                created_at=datetime(2026, 2, day, 12, tzinfo=timezone.utc),
            )
        )
    await db_session.flush()
    url = f"{API}/waste-photos"

    mine = await client.get(url, params={"company_id": str(company.id)}, headers=auth_headers(employee))
    assert mine.status_code == 200
    body = mine.json()
    assert body["total"] == 2
    assert mine.headers["X-Total-Count"] == "2"
    assert [p["image_url"] for p in body["data"]] == ["https://img.test/2.jpg", "https://img.test/1.jpg"]

    theirs = await client.get(
        url, params={"company_id": str(company.id), "user_id": str(colleague.id)}, headers=auth_headers(employee)
    )
    assert theirs.status_code == 403

    everyone = await client.get(
        url, params={"company_id": str(company.id), "take": 2}, headers=auth_headers(company_admin)
    )
    assert everyone.json()["total"] == 3
    assert len(everyone.json()["data"]) == 2

    outsider = await make_user()
    denied = await client.get(url, params={"company_id": str(company.id)}, headers=auth_headers(outsider))
    assert denied.status_code == 403

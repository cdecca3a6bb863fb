from datetime import date, datetime, timedelta, timezone

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.company import Company
from app.models.enums import AchievementCriterionType, TrashBinType, WastePhotoStatus
from app.models.gamification import DailyChallenge, DailyChallengeProgress
from app.models.user import User
from app.models.waste_photo import WastePhoto
from app.services import outcomes
from app.services.gamification_service import GamificationService

DAY = date(2026, 5, 4)


async def _add_challenge(db: AsyncSession, company_id, criterion, target, *, start=DAY, end=DAY, active=True):
    challenge = DailyChallenge(
        company_id=company_id,
        title="Sort it out",
        description="Classify waste today",
        criterion_type=criterion,
        target=target,
        start_date=start,
        end_date=end,
        is_active=active,
    )
    db.add(challenge)
    await db.flush()
    return challenge


async def _add_photo(db: AsyncSession, user: User, company_id, status=WastePhotoStatus.CLASSIFIED):
    photo = WastePhoto(
        company_id=company_id,
        user_id=user.id,
        image_url="https://img.test/waste.jpg",
        status=status,
        recommended_bin_type=TrashBinType.PLASTIC if status == WastePhotoStatus.CLASSIFIED else None,
        created_at=datetime(2026, 5, 4, 9, tzinfo=timezone.utc),
    )
    db.add(photo)
    await db.flush()
    return photo


@pytest.mark.asyncio
async def test_progress_tracks_classified_photos(db_session: AsyncSession, employee: User, company):
    challenge = await _add_challenge(db_session, company.id, AchievementCriterionType.TOTAL_PHOTOS, 2)
    await _add_photo(db_session, employee, company.id)
    await _add_photo(db_session, employee, company.id, status=WastePhotoStatus.PENDING)

    result = await GamificationService(db_session).update_daily_challenge_progress(employee.id, company.id, today=DAY)

    assert [p.challenge_id for p in result.evaluated] == [challenge.id]
    assert result.evaluated[0].current_progress == 1
    assert result.completed == []
    assert employee.total_points == 0


@pytest.mark.asyncio
async def test_completion_awards_reward_once(db_session: AsyncSession, employee: User, company):
    await _add_challenge(db_session, company.id, AchievementCriterionType.TOTAL_PHOTOS, 2)
    await _add_photo(db_session, employee, company.id)
    await _add_photo(db_session, employee, company.id)
    service = GamificationService(db_session)

    first = await service.update_daily_challenge_progress(employee.id, company.id, today=DAY)
    await _add_photo(db_session, employee, company.id)
    second = await service.update_daily_challenge_progress(employee.id, company.id, today=DAY)

    assert len(first.completed) == 1
    assert first.completed[0].completed_at is not None
    assert second.evaluated == []
    assert second.completed == []
    assert employee.total_points == 100
    assert employee.experience == 50

    rows = (await db_session.execute(select(DailyChallengeProgress))).scalars().all()
    assert len(rows) == 1
    assert rows[0].current_progress == 2


@pytest.mark.asyncio
async def test_only_todays_active_challenges_are_evaluated(db_session: AsyncSession, employee: User, company):
    await _add_challenge(
        db_session, company.id, AchievementCriterionType.TOTAL_PHOTOS, 1,
        start=DAY + timedelta(days=1), end=DAY + timedelta(days=1),
    )
    await _add_challenge(db_session, company.id, AchievementCriterionType.TOTAL_PHOTOS, 1, active=False)
    ongoing = await _add_challenge(
        db_session, company.id, AchievementCriterionType.TOTAL_PHOTOS, 5,
        start=DAY - timedelta(days=3), end=DAY + timedelta(days=3),
    )

    service = GamificationService(db_session)
    todays = await service.get_todays_challenges(company.id, today=DAY)
    result = await service.update_daily_challenge_progress(employee.id, company.id, today=DAY)

    assert [c.id for c in todays] == [ongoing.id]
    assert [p.challenge_id for p in result.evaluated] == [ongoing.id]


@pytest.mark.asyncio
async def test_streak_update_completes_streak_challenge(db_session: AsyncSession, employee: User, company):
    challenge = await _add_challenge(db_session, company.id, AchievementCriterionType.STREAK_DAYS, 1)

    result = await GamificationService(db_session).update_streak(employee.id, company.id, today=DAY)

    assert [p.challenge_id for p in result.challenges.completed] == [challenge.id]
    assert employee.total_points == 100


@pytest.mark.asyncio
async def test_other_companies_photos_do_not_count(db_session: AsyncSession, employee: User, company):
    other = Company(name="Elsewhere")
    db_session.add(other)
    await db_session.flush()
    await _add_challenge(db_session, company.id, AchievementCriterionType.CORRECT_BIN_MATCHES, 1)
    await _add_photo(db_session, employee, other.id)

    result = await GamificationService(db_session).update_daily_challenge_progress(employee.id, company.id, today=DAY)

    assert result.evaluated[0].current_progress == 0
    assert not result.evaluated[0].is_completed


@pytest.mark.asyncio
async def test_unknown_user_is_skipped(db_session: AsyncSession, company):
    await _add_challenge(db_session, company.id, AchievementCriterionType.TOTAL_PHOTOS, 1)

    result = await GamificationService(db_session).update_daily_challenge_progress(uuid.uuid4(), company.id, today=DAY)

    assert result.skipped_reason == outcomes.USER_NOT_FOUND
    assert result.evaluated == []
    progress = await db_session.execute(select(DailyChallengeProgress))
    assert progress.scalars().all() == []

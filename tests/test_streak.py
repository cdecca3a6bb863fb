import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.services import outcomes
from app.services.gamification_service import GamificationService

DAY = date(2026, 3, 10)


@pytest.mark.asyncio
async def test_first_activity_starts_streak(db_session: AsyncSession, employee: User, company):
    result = await GamificationService(db_session).update_streak(employee.id, company.id, today=DAY)

    assert not result.skipped
    assert employee.current_streak == 1
    assert employee.best_streak == 1
    assert employee.last_activity_date == DAY


@pytest.mark.asyncio
async def test_same_day_is_idempotent(db_session: AsyncSession, employee: User, company):
    service = GamificationService(db_session)
    await service.update_streak(employee.id, company.id, today=DAY)

    again = await service.update_streak(employee.id, company.id, today=DAY)

    assert again.skipped_reason == outcomes.ALREADY_ACTIVE_TODAY
    assert again.current_streak == 1
    assert employee.current_streak == 1
    assert employee.last_activity_date == DAY


@pytest.mark.asyncio
async def test_consecutive_days_extend_streak(db_session: AsyncSession, employee: User, company):
    service = GamificationService(db_session)
    for offset in range(4):
        await service.update_streak(employee.id, company.id, today=DAY + timedelta(days=offset))

    assert employee.current_streak == 4
    assert employee.best_streak == 4


@pytest.mark.asyncio
async def test_gap_resets_streak_but_keeps_best(db_session: AsyncSession, employee: User, company):
    service = GamificationService(db_session)
    for offset in range(3):
        await service.update_streak(employee.id, company.id, today=DAY + timedelta(days=offset))

    result = await service.update_streak(employee.id, company.id, today=DAY + timedelta(days=5))

    assert result.current_streak == 1
    assert result.best_streak == 3
    assert employee.last_activity_date == DAY + timedelta(days=5)


@pytest.mark.asyncio
async def test_earlier_date_counts_as_already_active(db_session: AsyncSession, employee: User, company):
    service = GamificationService(db_session)
    await service.update_streak(employee.id, company.id, today=DAY)

    result = await service.update_streak(employee.id, company.id, today=DAY - timedelta(days=2))

    assert result.skipped_reason == outcomes.ALREADY_ACTIVE_TODAY
    assert employee.last_activity_date == DAY


@pytest.mark.asyncio
async def test_missing_user_is_skipped(db_session: AsyncSession, company):
    result = await GamificationService(db_session).update_streak(uuid.uuid4(), company.id, today=DAY)

    assert result.skipped_reason == outcomes.USER_NOT_FOUND
    assert result.current_streak == 0

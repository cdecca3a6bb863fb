import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.company import Company, user_employee_companies
from app.models.enums import Role
from app.models.user import User


class CompanyService:
    @staticmethod
    async def get_company(company_id: uuid.UUID, db: AsyncSession) -> Company | None:
        result = await db.execute(select(Company).where(Company.id == company_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def is_employee(user_id: uuid.UUID, company_id: uuid.UUID, db: AsyncSession) -> bool:
        result = await db.execute(
            select(user_employee_companies.c.user_id).where(
                user_employee_companies.c.user_id == user_id,
                user_employee_companies.c.company_id == company_id,
            )
        )
        return result.first() is not None

    @staticmethod
    async def can_manage(user: User, company_id: uuid.UUID, db: AsyncSession) -> bool:
        """Platform admins manage every company; company admins manage the ones they created."""
        if user.role == Role.ADMIN:
            return True
        if user.role != Role.COMPANY_ADMIN:
            return False
        company = await CompanyService.get_company(company_id, db)
        return company is not None and company.created_by_id == user.id

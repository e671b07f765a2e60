"""
Seed script: create tables, then upsert the default academic year and one class.

Usage:
  python -m app.db.seed_data
"""
import asyncio
import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import SYSTEM_ACTOR
from app.core.logging import configure_logging
from app.core.models import AcademicYear, SchoolClass
from app.db.session import StudentSessionLocal, create_tables, engine

logger = logging.getLogger("app.db.seed_data")

ACADEMIC_YEAR = "2024/2025"


async def seed_academic_year(db: AsyncSession) -> AcademicYear:
    result = await db.execute(select(AcademicYear).where(AcademicYear.year == ACADEMIC_YEAR))
    ay = result.scalar_one_or_none()
    if ay:
        logger.info("Academic year %s already present", ACADEMIC_YEAR)
        return ay
    await db.execute(update(AcademicYear).values(is_active=False))
    ay = AcademicYear(
        year=ACADEMIC_YEAR,
        start_date=date(2024, 7, 15),
        end_date=date(2025, 6, 20),
        semester1_start=date(2024, 7, 15),
        semester1_end=date(2024, 12, 20),
        semester2_start=date(2025, 1, 6),
        semester2_end=date(2025, 6, 20),
        is_active=True,
    )
    db.add(ay)
    await db.flush()
    logger.info("Created academic year %s", ACADEMIC_YEAR)
    return ay


async def seed_classes(db: AsyncSession) -> None:
    result = await db.execute(
        select(SchoolClass).where(
            SchoolClass.code == "X-IPA-1",
            SchoolClass.academic_year == ACADEMIC_YEAR,
        )
    )
    if result.scalar_one_or_none():
        logger.info("Class X-IPA-1 already present")
        return
    db.add(
        SchoolClass(
            code="X-IPA-1",
            name="10 IPA 1",
            level="10",
            major="IPA",
            academic_year=ACADEMIC_YEAR,
            capacity=36,
            current_total=0,
            is_active=True,
            created_by=SYSTEM_ACTOR,
        )
    )
    logger.info("Created class X-IPA-1")


async def main() -> None:
    configure_logging()
    await create_tables()
    async with StudentSessionLocal() as db:
        await seed_academic_year(db)
        await seed_classes(db)
        await db.commit()
    await engine.dispose()
    logger.info("Seeded successfully")


if __name__ == "__main__":
    asyncio.run(main())

"""
Database Seed Data Module

Creates the first admin account and a starter enrollment allow-list.
Run with: alumnet-seed            (seed)
          alumnet-seed clear      (delete all data)
"""
import asyncio
import sys
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.config import settings
from alumnet.core.database import AsyncSessionLocal, Base, init_db
from alumnet.core.security import get_password_hash
from alumnet.models.enrollment import Enrollment
from alumnet.models.user import User, UserRole
import alumnet.models  # noqa: F401 - register every table on the metadata


# ==================== Sample Data Constants ====================

SAMPLE_ENROLLMENTS = [
    # Students
    {"enrollment_id": "STU2024001", "role": UserRole.STUDENT},
    {"enrollment_id": "STU2024002", "role": UserRole.STUDENT},
    {"enrollment_id": "STU2024003", "role": UserRole.STUDENT},
    {"enrollment_id": "STU2024004", "role": UserRole.STUDENT},

    # Alumni
    {"enrollment_id": "ALU2019001", "role": UserRole.ALUMNI},
    {"enrollment_id": "ALU2019002", "role": UserRole.ALUMNI},
    {"enrollment_id": "ALU2020001", "role": UserRole.ALUMNI},

    # Faculty
    {"enrollment_id": "FAC001", "role": UserRole.FACULTY},
    {"enrollment_id": "FAC002", "role": UserRole.FACULTY},
]


# ==================== Seed Functions ====================

async def seed_admin(db: AsyncSession) -> Optional[User]:
    """Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD"""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        print("ADMIN_EMAIL / ADMIN_PASSWORD not set, skipping admin account")
        return None

    email = settings.ADMIN_EMAIL.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    admin = result.scalar_one_or_none()
    if admin is not None:
        print(f"Admin {email} already exists")
        return admin

    admin = User(
        email=email,
        username=settings.ADMIN_USERNAME,
        name="Administrator",
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_active=True,
        is_verified=True,
    )
    db.add(admin)
    await db.flush()
    print(f"Created admin {email}")
    return admin


async def seed_enrollments(db: AsyncSession) -> List[Enrollment]:
    """Create sample enrollments, skipping IDs that already exist"""
    result = await db.execute(select(Enrollment.enrollment_id))
    existing = {row[0] for row in result.all()}

    enrollments = []
    for data in SAMPLE_ENROLLMENTS:
        if data["enrollment_id"] in existing:
            continue
        enrollment = Enrollment(enrollment_id=data["enrollment_id"], role=data["role"])
        db.add(enrollment)
        enrollments.append(enrollment)

    await db.flush()
    print(f"Created {len(enrollments)} enrollments")
    return enrollments


# ==================== Main Seed Function ====================

async def seed_all():
    """Seed all sample data"""
    print("=" * 50)
    print("Starting database seeding...")
    print("=" * 50)

    # Initialize database
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            await seed_admin(db)
            await seed_enrollments(db)

            await db.commit()
            print("=" * 50)
            print("Database seeding completed successfully!")
            print("=" * 50)

        except Exception as e:
            await db.rollback()
            print(f"Error seeding database: {e}")
            raise


async def clear_all():
    """Clear all data from database"""
    print("Clearing all data...")
    async with AsyncSessionLocal() as db:
        # Delete in reverse order of dependencies
        for table in reversed(Base.metadata.sorted_tables):
            await db.execute(delete(table))
        await db.commit()
        print("All data cleared!")


def main():
    """Entry point for the alumnet-seed console script"""
    if len(sys.argv) > 1 and sys.argv[1] == "clear":
        asyncio.run(clear_all())
    else:
        asyncio.run(seed_all())


if __name__ == "__main__":
    main()

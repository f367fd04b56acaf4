#!/usr/bin/env python3
"""Seed an HR Portal database with demo data.

Creates departments, employees, the standard leave types, the leave
balances for a year and an initial system administrator account. Safe to
re-run: records that already exist are skipped.

Usage:
    python scripts/seed_data.py                      # seed current year
    python scripts/seed_data.py --year 2025
    python scripts/seed_data.py --admin-password s3cret-pass
    python scripts/seed_data.py --balances-only      # provision balances only

Reads DATABASE_URL / JWT_SECRET from the environment or .env.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.auth.schemas import UserCreate
from hrportal.auth.service import count_users, register_user
from hrportal.common.constants import UserRole
from hrportal.common.logging_config import setup_logging
from hrportal.core_hr.models import Department, Employee
from hrportal.database import async_session_factory, engine
from hrportal.leave.models import LeaveType
from hrportal.leave.service import LeaveBalanceService

logger = logging.getLogger("seed_data")


# ═════════════════════════════════════════════════════════════════════
# Demo data
# ═════════════════════════════════════════════════════════════════════

DEPARTMENTS = [
    ("Engineering", "Product and platform engineering", "Priya Raman"),
    ("Human Resources", "People operations", "Daniel Okafor"),
    ("Finance", "Accounting and payroll", "Mei Chen"),
]

# (first, last, email, position, department, start date)
EMPLOYEES = [
    ("Priya", "Raman", "priya.raman@example.com", "Engineering Manager", "Engineering", date(2019, 4, 1)),
    ("Arjun", "Mehta", "arjun.mehta@example.com", "Backend Engineer", "Engineering", date(2021, 7, 12)),
    ("Sara", "Lindqvist", "sara.lindqvist@example.com", "Frontend Engineer", "Engineering", date(2022, 2, 7)),
    ("Daniel", "Okafor", "daniel.okafor@example.com", "HR Business Partner", "Human Resources", date(2018, 9, 3)),
    ("Mei", "Chen", "mei.chen@example.com", "Finance Lead", "Finance", date(2020, 1, 20)),
]

LEAVE_TYPES = [
    ("Annual Leave", "Paid annual vacation", 20),
    ("Sick Leave", "Illness or medical appointments", 10),
    ("Personal Leave", "Personal matters", 3),
    ("Unpaid Leave", "Leave without pay", 0),
]


# ═════════════════════════════════════════════════════════════════════
# Seed steps
# ═════════════════════════════════════════════════════════════════════


async def seed_departments(db: AsyncSession) -> dict[str, Department]:
    existing = {d.name: d for d in (await db.execute(select(Department))).scalars().all()}
    for name, description, manager in DEPARTMENTS:
        if name in existing:
            continue
        dept = Department(name=name, description=description, manager=manager)
        db.add(dept)
        existing[name] = dept
        logger.info("Department created: %s", name)
    await db.flush()
    return existing


async def seed_employees(db: AsyncSession, departments: dict[str, Department]) -> int:
    emails = set((await db.execute(select(Employee.email))).scalars().all())
    created = 0
    for first, last, email, position, dept_name, start in EMPLOYEES:
        if email in emails:
            continue
        db.add(
            Employee(
                first_name=first,
                last_name=last,
                email=email,
                position=position,
                department_id=departments[dept_name].id,
                start_date=start,
            )
        )
        created += 1
    await db.flush()
    logger.info("Employees created: %d", created)
    return created


async def seed_leave_types(db: AsyncSession) -> int:
    names = set((await db.execute(select(LeaveType.name))).scalars().all())
    created = 0
    for name, description, default_days in LEAVE_TYPES:
        if name in names:
            continue
        db.add(LeaveType(name=name, description=description, default_days=default_days))
        created += 1
    await db.flush()
    logger.info("Leave types created: %d", created)
    return created


async def seed_admin(db: AsyncSession, username: str, password: str) -> None:
    # Only the very first account can be created without an acting admin
    if await count_users(db) > 0:
        logger.info("Users already exist; skipping admin %r", username)
        return
    user = await register_user(
        db, UserCreate(username=username, password=password, role=UserRole.system_admin),
    )
    logger.info("Admin user created: %s (%s)", user.username, user.role.value)


async def run(args: argparse.Namespace) -> None:
    async with async_session_factory() as db:
        try:
            if not args.balances_only:
                departments = await seed_departments(db)
                await seed_employees(db, departments)
                await seed_leave_types(db)
                await seed_admin(db, args.admin_username, args.admin_password)

            created = await LeaveBalanceService.provision_year(db, args.year)
            logger.info("Leave balances provisioned for %d: %d", args.year, created)

            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Seeding failed; nothing was written")
            raise
    await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the HR Portal database")
    parser.add_argument("--year", type=int, default=date.today().year,
                        help="Leave year to provision balances for")
    parser.add_argument("--admin-username", default="admin")
    parser.add_argument("--admin-password", default="change-me-now",
                        help="Password for the initial system administrator")
    parser.add_argument("--balances-only", action="store_true",
                        help="Only provision the year's leave balances")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    setup_logging(args.log_level)
    try:
        asyncio.run(run(args))
    except Exception:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

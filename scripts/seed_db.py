"""
Standalone script to provision the food ledger database.

Commands:
    init            create the tables (optionally dropping them first) and,
                    with --demo, insert demo admins, guardians, students and payments
    create-admin    add an administrator account
    create-guardian add a guardian account

Passwords are always stored as bcrypt hashes.

Examples:
    python scripts/seed_db.py init --demo
    python scripts/seed_db.py create-admin "Test Admin"
"""

import argparse
import asyncio
import datetime
import getpass
import os
import sys
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# --- Path Setup ---
# This allows the script to import modules from the 'src' directory
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.food_ledger.common.config import settings
from src.food_ledger.common.security_utils import HashedPassword
from src.food_ledger.database import models as db_models


# --- Demo Data ---
DEMO_ADMINS = [
    {"full_name": "Test Admin", "password": "change-me-admin"},
]

DEMO_GUARDIANS = [
    {"full_name": "Ivan Ivanov", "password": "change-me-guardian"},
    {"full_name": "Petr Petrov", "password": "change-me-guardian"},
]

DEMO_STUDENTS = [
    {"display_name": "Alexey Ivanov", "student_code": "1001", "guardian": "Ivan Ivanov"},
    {"display_name": "Maria Petrova", "student_code": "1002", "guardian": "Petr Petrov"},
    {"display_name": "Dmitry Sidorov", "student_code": "1003", "guardian": None},
]

DEMO_PAYMENTS = [
    {"student_code": "1001", "payment_date": datetime.date(2024, 1, 15), "amount": Decimal("500.00"), "description": "Meal top-up for January"},
    {"student_code": "1001", "payment_date": datetime.date(2024, 2, 10), "amount": Decimal("1000.00"), "description": "Meal top-up for February"},
    {"student_code": "1001", "payment_date": datetime.date(2024, 2, 12), "amount": Decimal("-120.50"), "description": "Canteen lunch"},
    {"student_code": "1002", "payment_date": datetime.date(2024, 1, 20), "amount": Decimal("800.50"), "description": "Meal top-up"},
    {"student_code": "1003", "payment_date": datetime.date(2024, 2, 1), "amount": Decimal("1200.00"), "description": "Meal top-up for February"},
]


async def create_tables(engine, reset: bool):
    async with engine.begin() as conn:
        if reset:
            print("Dropping existing tables...")
            await conn.run_sync(db_models.Base.metadata.drop_all)
        await conn.run_sync(db_models.Base.metadata.create_all)
    print("Tables are in place.")


async def seed_demo_data(session: AsyncSession):
    """Inserts the demo rows unless the database already has students."""
    existing = await session.scalar(select(func.count()).select_from(db_models.Students))
    if existing:
        print(f"Database already holds {existing} students. Skipping demo data.")
        return

    print("Seeding demo data...")
    admins = [
        db_models.Admins(full_name=entry["full_name"], password=HashedPassword.get_hash(entry["password"]))
        for entry in DEMO_ADMINS
    ]
    guardians = {
        entry["full_name"]: db_models.Guardians(full_name=entry["full_name"], password=HashedPassword.get_hash(entry["password"]))
        for entry in DEMO_GUARDIANS
    }
    session.add_all(admins + list(guardians.values()))
    await session.flush()

    students = {}
    for entry in DEMO_STUDENTS:
        data = entry.copy()
        guardian_name = data.pop("guardian")
        data["guardian_id"] = guardians[guardian_name].id if guardian_name else None
        students[data["student_code"]] = db_models.Students(**data)
    session.add_all(students.values())
    await session.flush()

    for entry in DEMO_PAYMENTS:
        data = entry.copy()
        data["student_id"] = students[data.pop("student_code")].id
        session.add(db_models.Payments(created_by=admins[0].id, **data))
    await session.commit()
    print("Demo data seeded.")


async def create_account(session: AsyncSession, model, full_name: str, password: str):
    existing = await session.scalar(select(model).filter(model.full_name == full_name))
    if existing is not None:
        raise SystemExit(f"An account named '{full_name}' already exists.")

    session.add(model(full_name=full_name, password=HashedPassword.get_hash(password)))
    await session.commit()
    print(f"Created {model.__tablename__[:-1]} '{full_name}'.")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Provision the food ledger database.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create tables and optionally seed demo data.")
    init_parser.add_argument("--reset", action="store_true", help="Drop all tables first.")
    init_parser.add_argument("--demo", action="store_true", help="Insert demo rows.")

    for command in ("create-admin", "create-guardian"):
        account_parser = subparsers.add_parser(command, help=f"Add a {command.split('-')[1]} account.")
        account_parser.add_argument("full_name")
        account_parser.add_argument("--password", help="Read from a prompt when omitted.")

    return parser.parse_args(argv)


async def main(argv=None):
    args = parse_args(argv)

    engine = create_async_engine(settings.database_url, echo=False)
    AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    try:
        if args.command == "init":
            await create_tables(engine, reset=args.reset)
            if args.demo:
                async with AsyncSessionLocal() as session:
                    await seed_demo_data(session)
        else:
            password = args.password or getpass.getpass("Password: ")
            model = db_models.Admins if args.command == "create-admin" else db_models.Guardians
            async with AsyncSessionLocal() as session:
                await create_account(session, model, args.full_name, password)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

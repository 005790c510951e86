"""Seed the database with demo users and tickets.

Usage:
    python -m app.tools.seed_db
    python -m app.tools.seed_db --drop  # drop and recreate all tables first
    python -m app.tools.seed_db --password secret123
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sqlalchemy import func, select

from app.adapters.auth.session_identity import SessionIdentityProvider
from app.adapters.persistence.database import Base, async_session_factory, engine
from app.adapters.persistence.models import TicketModel, UserModel
from app.adapters.persistence.repositories import (
    SqlConversationRepository,
    SqlTicketRepository,
    SqlUserRepository,
)
from app.application.errors import ConflictError
from app.application.use_cases.auth import AuthService
from app.application.use_cases.ticket_service import TicketService
from app.domain.entities.ticket import TicketDraft
from app.domain.value_objects.enums import TicketPriority

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

DEMO_USERS = [
    # email, first name, last name, role
    ("alice@example.com", "Alice", "Agent", "admin"),
    ("bob@example.com", "Bob", "Agent", "admin"),
    ("carol@example.com", "Carol", "Customer", "user"),
]

DEMO_TICKETS = [
    ("Cannot log in after password reset", "The reset link says it expired immediately.", TicketPriority.HIGH),
    ("Invoice shows wrong VAT rate", "March invoice applied 21% instead of 9%.", TicketPriority.MEDIUM),
    ("Feature request: dark mode", None, TicketPriority.LOW),
]


async def _reset_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema dropped and recreated")


async def seed(password: str, drop: bool = False) -> dict[str, int]:
    """Create the demo users (skipping existing ones) and tickets opened by the customer."""
    if drop:
        await _reset_schema()

    counts = {"users": 0, "tickets": 0}
    async with async_session_factory() as session:
        users = SqlUserRepository(session)
        auth = AuthService(users)

        for email, first, last, role in DEMO_USERS:
            try:
                await auth.register(email, password, first, last, role)
                counts["users"] += 1
            except ConflictError:
                logger.info("User %s already exists, skipping", email)

        customer = await users.get_by_email("carol@example.com")
        service = TicketService(
            ticket_repo=SqlTicketRepository(session),
            conversation_repo=SqlConversationRepository(session),
            identity=SessionIdentityProvider(users),
        )
        for title, description, priority in DEMO_TICKETS:
            await service.create_ticket(
                TicketDraft(
                    title=title,
                    description=description,
                    customer_name=f"{customer.first_name} {customer.last_name}",
                    priority=priority,
                ),
                customer,
            )
            counts["tickets"] += 1

        await session.commit()

    logger.info("Seed complete: %d users, %d tickets", counts["users"], counts["tickets"])
    return counts


async def _verify_data() -> None:
    """Print sanity checks after seeding."""
    async with async_session_factory() as session:
        n_users = (await session.execute(select(func.count()).select_from(UserModel))).scalar_one()
        n_admins = (
            await session.execute(
                select(func.count()).select_from(UserModel).where(UserModel.role == "admin")
            )
        ).scalar_one()
        n_tickets = (await session.execute(select(func.count()).select_from(TicketModel))).scalar_one()
        n_assigned = (
            await session.execute(
                select(func.count())
                .select_from(TicketModel)
                .where(TicketModel.assigned_to.is_not(None))
            )
        ).scalar_one()

    print(f"\n{'='*50}")
    print("SEED VERIFICATION")
    print(f"{'='*50}")
    print(f"Users:    {n_users} ({n_admins} admins)")
    print(f"Tickets:  {n_tickets} ({n_assigned} assigned)")


def main():
    parser = argparse.ArgumentParser(description="Seed the support desk database with demo data")
    parser.add_argument(
        "--drop", action="store_true", help="Drop and recreate all tables before seeding"
    )
    parser.add_argument(
        "--password", default="password123", help="Password for every demo user"
    )
    parser.add_argument(
        "--verify-only", action="store_true", help="Only print counts, do not seed"
    )
    args = parser.parse_args()

    if len(args.password) < 6:
        parser.error("--password must be at least 6 characters")

    if args.verify_only:
        asyncio.run(_verify_data())
    else:
        async def run_all():
            await seed(args.password, drop=args.drop)
            await _verify_data()
            await engine.dispose()

        asyncio.run(run_all())


if __name__ == "__main__":
    sys.exit(main())

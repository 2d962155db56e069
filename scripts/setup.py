#!/usr/bin/env python3
"""Setup script for the tour desk API: run migrations and seed sample tours."""

import asyncio
import logging
import sys
from decimal import Decimal
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from tourdesk.core.database import async_session_factory, close_db
from tourdesk.gateway import SqlAlchemyGateway, Table
from tourdesk.models.tour import TourType
from tourdesk.schemas.tour import Feature, TourDraft
from tourdesk.services.tour_catalog import TourCatalogService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_TOURS = [
    TourDraft(
        title="Oslob Whale Shark Encounter",
        price=Decimal("3500"),
        duration="10 hours",
        image="https://images.example.com/tours/oslob.jpg",
        type=TourType.REGULAR,
        location="Oslob",
        max_capacity=12,
        features=[
            Feature(text="Hotel pickup"),
            Feature(text="Snorkeling gear"),
            Feature(text="Lunch", available=False),
        ],
    ),
    TourDraft(
        title="Cebu City Heritage Walk",
        price=Decimal("1200"),
        duration="4 hours",
        image="https://images.example.com/tours/heritage.jpg",
        type=TourType.REGULAR,
        location="Cebu City",
        max_capacity=20,
        features=[Feature(text="Local guide"), Feature(text="Entrance fees")],
    ),
    TourDraft(
        title="Moalboal Sardine Run and Kawasan Falls",
        price=Decimal("4800"),
        duration="1 day",
        image="https://images.example.com/tours/moalboal-kawasan.jpg",
        sub_images=["https://images.example.com/tours/kawasan.jpg"],
        type=TourType.COMBO,
        location="Moalboal",
        max_capacity=10,
        features=[Feature(text="Canyoneering"), Feature(text="Island hopping")],
    ),
]


def run_migrations():
    """Upgrade the database schema to the latest revision."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create sample tours unless the catalog already has some."""
    gateway = SqlAlchemyGateway(async_session_factory)
    catalog = TourCatalogService(gateway)

    try:
        existing = await gateway.list(Table.TOURS, limit=1)
        if existing:
            logger.info("Sample data already exists, skipping...")
            return

        for draft in SAMPLE_TOURS:
            tour = await catalog.create_tour(draft)
            logger.info(f"Created tour '{tour.title}'")

        logger.info("Sample data created successfully!")
    finally:
        await close_db()


def main():
    """Main setup function."""
    logger.info("Starting tour desk API setup...")

    # Alembic drives its own event loop for the async engine
    run_migrations()
    asyncio.run(create_sample_data())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn tourdesk.main:app --reload")


if __name__ == "__main__":
    main()

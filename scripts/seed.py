"""Database seeder for the product catalog."""
import asyncio
import argparse
import random
import time
from decimal import Decimal

from catalog.database import engine, async_session, Base
from catalog.models import Product

CATEGORIES = ["Laptop", "Monitor", "Keyboard", "Mouse", "Headset", "Webcam",
              "Dock", "Tablet", "Speaker", "Router", "SSD", "Charger"]

ADJECTIVES = ["Pro", "Air", "Ultra", "Mini", "Max", "Lite", "Plus", "Go"]


async def seed(count: int, keep: bool = False):
    print(f"Seeding: {count} products")
    start = time.perf_counter()

    async with engine.begin() as conn:
        if not keep:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        batch_size = 500
        for batch_start in range(0, count, batch_size):
            batch_end = min(batch_start + batch_size, count)
            for i in range(batch_start, batch_end):
                category = random.choice(CATEGORIES)
                session.add(Product(
                    name=f"{category} {random.choice(ADJECTIVES)} {i}",
                    description=f"A dependable {category.lower()} for everyday use.",
                    price=Decimal(random.randint(999, 249999)) / 100,
                    stock=random.randint(0, 500),
                ))
            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: products created")

        await session.commit()

    await engine.dispose()
    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the product catalog database")
    parser.add_argument("--count", type=int, default=100, help="Number of products to create")
    parser.add_argument("--keep", action="store_true", help="Keep existing rows instead of recreating tables")
    args = parser.parse_args()
    asyncio.run(seed(args.count, keep=args.keep))


if __name__ == "__main__":
    main()

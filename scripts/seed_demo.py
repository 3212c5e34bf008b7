"""
Seed the configured store with demo artisans, customers and products, then
print the personalized feed for one demo customer.

Run from project root:
    python scripts/seed_demo.py
    python scripts/seed_demo.py --store memory
    python scripts/seed_demo.py --drop        # clear Mongo collections first
"""

import argparse
import random
from datetime import timedelta

from artisanhub.adapters.repository import MongoRepository, get_repository, new_id
from artisanhub.config import configure_logging, get_logger, log_banner, log_kv
from artisanhub.core import Category, Product, User, UserType, utcnow
from artisanhub.services import FeedService, InsightsService

logger = get_logger(__name__)

ARTISANS = [
    ("Asha Patel", "Jaipur, India", [Category.TEXTILES, Category.JEWELRY]),
    ("Tomas Rivera", "Oaxaca, Mexico", [Category.POTTERY, Category.CERAMICS]),
    ("Ingrid Holm", "Bergen, Norway", [Category.WOODWORK, Category.SCULPTURES]),
    ("Kofi Mensah", "Kumasi, Ghana", [Category.METALWORK, Category.PAINTINGS]),
]

CUSTOMERS = ["Maya Chen", "Liam Brooks", "Sofia Rossi"]

TITLE_WORDS = {
    Category.POTTERY: ["Glazed Vase", "Terracotta Bowl", "Stoneware Jug"],
    Category.TEXTILES: ["Block-Print Scarf", "Handwoven Rug", "Silk Throw"],
    Category.WOODWORK: ["Walnut Tray", "Carved Spoon Set", "Oak Stool"],
    Category.JEWELRY: ["Silver Cuff", "Beaded Necklace", "Brass Earrings"],
    Category.PAINTINGS: ["Harbor at Dusk", "Market Morning", "Abstract No. 7"],
    Category.SCULPTURES: ["Driftwood Heron", "Stone Figure", "Bronze Hand"],
    Category.METALWORK: ["Copper Lantern", "Iron Candle Holder", "Tin Mirror"],
    Category.CERAMICS: ["Raku Tea Cup", "Porcelain Plate", "Celadon Mug"],
}


def build_demo_data(rng: random.Random) -> tuple[list[User], list[User], list[Product]]:
    """Generate artisans, customers and products with varied age and engagement."""
    now = utcnow()

    artisans = [
        User(
            user_id=new_id(),
            name=name,
            email=f"{name.split()[0].lower()}@artisanhub.example",
            user_type=UserType.ARTISAN,
            location=location,
            bio=f"Maker of {' and '.join(c.value.lower() for c in cats)}.",
            is_verified=rng.random() < 0.5,
        )
        for name, location, cats in ARTISANS
    ]
    customers = [
        User(
            user_id=new_id(),
            name=name,
            email=f"{name.split()[0].lower()}@example.com",
        )
        for name in CUSTOMERS
    ]

    products = []
    for artisan, (_, _, categories) in zip(artisans, ARTISANS):
        for category in categories:
            for title in TITLE_WORDS[category]:
                products.append(
                    Product(
                        product_id=new_id(),
                        artist_id=artisan.user_id,
                        artist_name=artisan.name,
                        title=title,
                        description=f"{title} handmade by {artisan.name}.",
                        category=category,
                        price=round(rng.uniform(15, 400), 2),
                        likes=[c.user_id for c in customers if rng.random() < 0.4],
                        views=rng.randint(0, 500),
                        is_featured=rng.random() < 0.1,
                        tags=[category.value.lower(), "handmade"],
                        created_at=now - timedelta(days=rng.randint(0, 60)),
                    )
                )

    # First customer follows one artisan and favorites two products
    first = customers[0]
    followed = artisans[0]
    first.following.append(followed.user_id)
    followed.followers.append(first.user_id)
    first.favorites.extend(p.product_id for p in rng.sample(products, 2))

    return artisans, customers, products


def main():
    parser = argparse.ArgumentParser(description="Seed ArtisanHub demo data")
    parser.add_argument("--store", choices=["mongo", "memory"], default=None,
                        help="Store backend (defaults to ARTISANHUB_STORE)")
    parser.add_argument("--drop", action="store_true",
                        help="Drop existing Mongo collections before seeding")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    configure_logging()
    log_banner(logger, "ARTISANHUB DEMO SEED")

    repository = get_repository(args.store)
    if isinstance(repository, MongoRepository):
        if args.drop:
            for name in ("users", "products", "orders"):
                repository.db.drop_collection(name)
            logger.info("Dropped existing collections")
        repository.ensure_indexes()

    artisans, customers, products = build_demo_data(random.Random(args.seed))
    for user in artisans + customers:
        repository.add_user(user)
    for product in products:
        repository.add_product(product)

    log_kv(logger, "Artisans", len(artisans))
    log_kv(logger, "Customers", len(customers))
    log_kv(logger, "Products", len(products))

    viewer = customers[0]
    log_banner(logger, f"FEED FOR {viewer.name.upper()}")
    feed = FeedService(repository).personalized_feed(viewer.user_id, page=1, limit=5)
    for rank, item in enumerate(feed.items, 1):
        logger.info(
            "%d. %-22s %-10s score=%.2f by %s",
            rank,
            item.product.title,
            item.product.category.value,
            item.score,
            item.product.artist_name,
        )

    log_banner(logger, "MARKET INSIGHTS")
    insights = InsightsService(repository).market_insights()
    logger.info(insights.analysis)

    log_banner(logger, "DEMO IDS")
    log_kv(logger, "Customer (X-User-Id)", viewer.user_id)
    log_kv(logger, "Artisan (X-User-Id)", artisans[0].user_id)


if __name__ == "__main__":
    main()

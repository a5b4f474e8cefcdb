"""
Seed or wipe the store database.

    python seed.py       # clear everything, then import sample data
    python seed.py -d    # clear everything
"""
import argparse
import random
import sys

from pymongo.database import Database

import database
from auth import USERS, hash_password
from catalog import CATEGORIES, PRODUCTS, SUBCATEGORIES
from database import create_document
from logger import get_logger
from routers.orders import ORDERS

log = get_logger("seed")

CATEGORY_DATA = [
    ("Silk Sarees", ["Banarasi Silk", "Kanjivaram Silk", "Patola Silk", "Mysore Silk", "Tussar Silk"]),
    ("Cotton Sarees", ["Pure Cotton", "Khadi Cotton", "Chanderi Cotton", "Kota Cotton"]),
    ("Georgette Sarees", ["Printed Georgette", "Embroidered Georgette", "Designer Georgette"]),
    ("Handloom Sarees", ["Jamdani", "Ikat", "Bhagalpuri", "Maheshwari", "Sambalpuri"]),
    ("Printed Sarees", ["Digital Print", "Block Print", "Floral Print", "Kalamkari Print"]),
]

SAMPLE_IMAGES = [
    "https://images.unsplash.com/photo-1610030469983-98e550d6193c?auto=format&fit=crop&q=80&w=800",
    "https://images.unsplash.com/photo-1617627143750-d86bc21e42bb?auto=format&fit=crop&q=80&w=800",
    "https://images.unsplash.com/photo-1583391733956-6c78276477e2?auto=format&fit=crop&q=80&w=800",
]

ALL_COLLECTIONS = (ORDERS, PRODUCTS, USERS, CATEGORIES, SUBCATEGORIES)


def destroy_data(db: Database) -> None:
    for name in ALL_COLLECTIONS:
        db[name].delete_many({})
    log.info("Data cleared")


def import_data(db: Database, rng: random.Random = None) -> dict:
    rng = rng or random.Random()
    destroy_data(db)

    admin_id = create_document(USERS, {
        "name": "Admin User",
        "email": "admin@example.com",
        "phone": None,
        "password": hash_password("123456"),
        "role": "admin",
        "is_active": True,
        "addresses": [],
        "wishlist": [],
    }, database=db)
    create_document(USERS, {
        "name": "John Doe",
        "email": "john@example.com",
        "phone": None,
        "password": hash_password("123456"),
        "role": "user",
        "is_active": True,
        "addresses": [],
        "wishlist": [],
    }, database=db)
    log.info("Users created")

    admin_oid = database.parse_object_id(admin_id)
    counts = {"categories": 0, "subcategories": 0, "products": 0}
    for cat_name, sub_names in CATEGORY_DATA:
        cat_id = database.parse_object_id(create_document(CATEGORIES, {
            "name": cat_name,
            "description": f"Collection of {cat_name}",
            "image": None,
            "is_active": True,
        }, database=db))
        counts["categories"] += 1

        for sub_name in sub_names:
            sub_id = database.parse_object_id(create_document(SUBCATEGORIES, {
                "name": sub_name,
                "category": cat_id,
                "is_active": True,
            }, database=db))
            counts["subcategories"] += 1

            for i in range(rng.randint(1, 3)):
                image = rng.choice(SAMPLE_IMAGES)
                create_document(PRODUCTS, {
                    "name": f"{sub_name} Exclusive {i + 1}",
                    "price": float(rng.randint(2000, 25000)),
                    "description": f"Premium {sub_name}. Perfect for special occasions. Handwoven with care.",
                    "image": image,
                    "images": [image],
                    "category": cat_id,
                    "subcategory": sub_id,
                    "count_in_stock": rng.randint(1, 20),
                    "discount": float(rng.randint(0, 29)) if rng.random() > 0.3 else 0.0,
                    "is_active": True,
                    "rating": 0.0,
                    "num_reviews": 0,
                    "reviews": [],
                    "user": admin_oid,
                }, database=db)
                counts["products"] += 1

    log.info(
        f"Imported {counts['categories']} categories, "
        f"{counts['subcategories']} subcategories, {counts['products']} products"
    )
    return counts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the store database")
    parser.add_argument("-d", "--destroy", action="store_true", help="only delete existing data")
    args = parser.parse_args(argv)

    if database.db is None:
        log.error("DATABASE_URL / DATABASE_NAME not set")
        return 1

    if args.destroy:
        destroy_data(database.db)
    else:
        import_data(database.db)
    return 0


if __name__ == "__main__":
    sys.exit(main())

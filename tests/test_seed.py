import random

import seed
from auth import USERS
from catalog import CATEGORIES, PRODUCTS, SUBCATEGORIES, list_products


def test_import_then_destroy(db):
    counts = seed.import_data(db, rng=random.Random(7))

    assert db[USERS].count_documents({"role": "admin"}) == 1
    assert db[CATEGORIES].count_documents({}) == counts["categories"] == len(seed.CATEGORY_DATA)
    assert db[SUBCATEGORIES].count_documents({}) == counts["subcategories"]
    assert db[PRODUCTS].count_documents({}) == counts["products"]
    assert counts["products"] >= counts["subcategories"]

    listing = list_products(db, keyword="kanjivaram", limit=50)
    assert listing["total"] >= 1
    assert all(p["category"]["name"] == "Silk Sarees" for p in listing["products"])

    seed.destroy_data(db)
    assert all(db[name].count_documents({}) == 0 for name in seed.ALL_COLLECTIONS)


def test_main_without_database(monkeypatch):
    monkeypatch.setattr(seed.database, "db", None)
    assert seed.main([]) == 1

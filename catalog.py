"""
Catalog queries and product writes.

Everything here takes a pymongo Database as its first argument and returns
plain JSON-ready dicts. Listing is always newest first, visibility is
active-only unless the caller asks for everything, and category/subcategory
references are resolved before a product leaves this module.

Review writes are read-modify-write on the product document: two reviews
landing at the same moment can overwrite each other's append. The database's
per-document write is the only guard.
"""
import math
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError
from pymongo import DESCENDING
from pymongo.database import Database

from database import create_document, doc_to_dict, now, parse_object_id
from errors import Conflict, NotFound, ValidationFailed
from logger import get_logger
from schemas import DEFAULT_PRODUCT_IMAGE, Product, ProductUpdate

log = get_logger("catalog")

PRODUCTS = "product"
CATEGORIES = "category"
SUBCATEGORIES = "subcategory"

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 12
SIMILAR_LIMIT = 4
TOP_LIMIT = 3

# Largest skip/limit BSON can encode
MAX_INT64 = 2 ** 63 - 1

REQUIRED_PRODUCT_FIELDS = ("name", "price", "description", "category", "count_in_stock")

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


# ---------- Parameter handling ----------

def positive_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if 0 < value <= MAX_INT64 else default


def truthy(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return False
    return str(raw).strip().lower() in ("true", "1", "yes")


def parse_listing_params(page: Any = None, limit: Any = None, show_all: Any = None) -> Tuple[int, int, bool]:
    """Coerce raw query values; anything unusable falls back to the default."""
    page_n, limit_n = bounded_paging(page, limit)
    return page_n, limit_n, truthy(show_all)


def bounded_paging(page: Any, limit: Any) -> Tuple[int, int]:
    """Page and limit whose skip (limit * (page - 1)) still fits in a BSON int64."""
    page_n = positive_int(page, DEFAULT_PAGE)
    limit_n = positive_int(limit, DEFAULT_LIMIT)
    if limit_n * (page_n - 1) > MAX_INT64:
        page_n = DEFAULT_PAGE
    return page_n, limit_n


def build_product_filter(keyword: Optional[str] = None, show_all: bool = False) -> dict:
    query: Dict[str, Any] = {}
    keyword = (keyword or "").strip()
    if keyword:
        query["name"] = {"$regex": re.escape(keyword), "$options": "i"}
    if not show_all:
        query["is_active"] = True
    return query


# ---------- Reference resolution ----------

def _lookup(db: Database, collection: str, ids: Iterable[Any]) -> Dict[Any, dict]:
    wanted = list({i for i in ids if i is not None})
    if not wanted:
        return {}
    return {doc["_id"]: doc for doc in db[collection].find({"_id": {"$in": wanted}})}


def populate(db: Database, products: List[dict]) -> List[dict]:
    """Replace category/subcategory ids with the referenced documents (None if gone)."""
    categories = _lookup(db, CATEGORIES, (p.get("category") for p in products))
    subcategories = _lookup(db, SUBCATEGORIES, (p.get("subcategory") for p in products))
    for p in products:
        p["category"] = categories.get(p.get("category"))
        p["subcategory"] = subcategories.get(p.get("subcategory"))
    return products


def _resolve_reference(db: Database, collection: str, raw: Any, label: str) -> ObjectId:
    try:
        oid = ObjectId(str(raw))
    except (InvalidId, TypeError):
        raise ValidationFailed(f"Invalid {label}")
    doc = db[collection].find_one({"_id": oid})
    if not doc:
        raise ValidationFailed(f"Invalid {label}")
    return oid


def _resolve_categories(db: Database, category: Any, subcategory: Any) -> Tuple[ObjectId, Optional[ObjectId]]:
    cat_id = _resolve_reference(db, CATEGORIES, category, "category")
    if subcategory in (None, ""):
        return cat_id, None
    sub_id = _resolve_reference(db, SUBCATEGORIES, subcategory, "subcategory")
    sub = db[SUBCATEGORIES].find_one({"_id": sub_id})
    if sub.get("category") != cat_id:
        raise ValidationFailed("Subcategory does not belong to category")
    return cat_id, sub_id


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err.get("loc", ()))
    return f"{field}: {err.get('msg')}" if field else err.get("msg", "Invalid product data")


# ---------- Queries ----------

def list_products(
    db: Database,
    keyword: Optional[str] = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    show_all: bool = False,
) -> dict:
    page, limit = bounded_paging(page, limit)
    query = build_product_filter(keyword, show_all)

    total = db[PRODUCTS].count_documents(query)
    cursor = db[PRODUCTS].find(query).sort(NEWEST_FIRST).skip(limit * (page - 1)).limit(limit)
    products = populate(db, list(cursor))

    return {
        "products": [doc_to_dict(p) for p in products],
        "page": page,
        "pages": math.ceil(total / limit),
        "total": total,
    }


def get_product_detail(db: Database, product_id: Any) -> dict:
    pid = parse_object_id(product_id, "Product")
    product = db[PRODUCTS].find_one({"_id": pid})
    if not product:
        raise NotFound("Product not found")

    similar = db[PRODUCTS].find(
        {"category": product.get("category"), "_id": {"$ne": pid}, "is_active": True}
    ).limit(SIMILAR_LIMIT)

    populate(db, [product])
    return {
        "product": doc_to_dict(product),
        "similarProducts": [doc_to_dict(p) for p in similar],
    }


def top_products(db: Database, count: int = TOP_LIMIT) -> List[dict]:
    cursor = db[PRODUCTS].find({"is_active": True}).sort(
        [("rating", DESCENDING)] + NEWEST_FIRST
    ).limit(count)
    return [doc_to_dict(p) for p in populate(db, list(cursor))]


# ---------- Reviews ----------

def summarize_reviews(reviews: List[dict]) -> Tuple[int, float]:
    """Count and mean rating, recomputed from the full list."""
    if not reviews:
        return 0, 0.0
    return len(reviews), sum(float(r["rating"]) for r in reviews) / len(reviews)


def add_review(db: Database, product_id: Any, user: dict, rating: float, comment: str = "") -> dict:
    pid = parse_object_id(product_id, "Product")
    product = db[PRODUCTS].find_one({"_id": pid})
    if not product:
        raise NotFound("Product not found")

    reviews = list(product.get("reviews") or [])
    if any(r.get("user") == user["_id"] for r in reviews):
        raise Conflict("Product already reviewed")

    review = {
        "_id": ObjectId(),
        "user": user["_id"],
        "name": user.get("name"),
        "rating": float(rating),
        "comment": comment,
        "created_at": now(),
    }
    reviews.append(review)
    num_reviews, rating_avg = summarize_reviews(reviews)

    db[PRODUCTS].update_one(
        {"_id": pid},
        {"$set": {
            "reviews": reviews,
            "num_reviews": num_reviews,
            "rating": rating_avg,
            "updated_at": now(),
        }},
    )
    log.info(f"Review added to product {pid} by user {user['_id']} (now {num_reviews} reviews)")
    return doc_to_dict(review)


# ---------- Admin writes ----------

def _fetch_populated(db: Database, pid: ObjectId) -> dict:
    doc = db[PRODUCTS].find_one({"_id": pid})
    populate(db, [doc])
    return doc_to_dict(doc)


ImageSaver = Callable[[], List[str]]


def create_product(db: Database, fields: dict, user: dict, save_images: Optional[ImageSaver] = None) -> dict:
    """Validate, then store uploads through save_images, then insert."""
    missing = [f for f in REQUIRED_PRODUCT_FIELDS if fields.get(f) in (None, "")]
    if missing:
        raise ValidationFailed("Please fill in all required fields")

    data = {k: v for k, v in fields.items() if v not in (None, "")}
    data.pop("image", None)
    data.pop("images", None)
    try:
        product = Product(**data)
    except ValidationError as exc:
        raise ValidationFailed(_first_error(exc))

    cat_id, sub_id = _resolve_categories(db, product.category, product.subcategory)

    images = save_images() if save_images else []
    primary = images[0] if images else DEFAULT_PRODUCT_IMAGE

    doc = product.model_dump()
    doc.update(
        image=primary,
        images=list(images) or [primary],
        category=cat_id,
        subcategory=sub_id,
        rating=0.0,
        num_reviews=0,
        reviews=[],
        user=user["_id"],
    )
    new_id = create_document(PRODUCTS, doc, database=db)
    log.info(f"Product {new_id} created by user {user['_id']}")
    return _fetch_populated(db, ObjectId(new_id))


def update_product(db: Database, product_id: Any, fields: dict, save_images: Optional[ImageSaver] = None) -> dict:
    """Apply the provided fields; None leaves a field unchanged. Uploads are stored last."""
    pid = parse_object_id(product_id, "Product")
    product = db[PRODUCTS].find_one({"_id": pid})
    if not product:
        raise NotFound("Product not found")

    try:
        changes = ProductUpdate(**{k: v for k, v in fields.items() if v not in (None, "")})
    except ValidationError as exc:
        raise ValidationFailed(_first_error(exc))
    update = changes.model_dump(exclude_none=True)

    if "category" in update or "subcategory" in update:
        category = update.get("category", product.get("category"))
        subcategory = update.get("subcategory", product.get("subcategory"))
        if "category" in update and "subcategory" not in update:
            # A new category invalidates the old subcategory
            subcategory = None
        update["category"], update["subcategory"] = _resolve_categories(db, category, subcategory)

    image = update.pop("image", None)
    images = save_images() if save_images else []
    if images:
        update["images"] = list(images)
        update["image"] = images[0]
    elif image:
        existing = [i for i in (product.get("images") or []) if i != image]
        update["images"] = [image] + existing
        update["image"] = image

    update["updated_at"] = now()
    db[PRODUCTS].update_one({"_id": pid}, {"$set": update})
    log.info(f"Product {pid} updated ({', '.join(sorted(update))})")
    return _fetch_populated(db, pid)


def delete_product(db: Database, product_id: Any) -> dict:
    pid = parse_object_id(product_id, "Product")
    result = db[PRODUCTS].delete_one({"_id": pid})
    if result.deleted_count == 0:
        raise NotFound("Product not found")
    log.info(f"Product {pid} removed")
    return {"message": "Product removed"}


def delete_products(db: Database, product_ids: Iterable[Any]) -> dict:
    ids = []
    for raw in product_ids:
        try:
            ids.append(ObjectId(str(raw)))
        except (InvalidId, TypeError):
            continue
    deleted = db[PRODUCTS].delete_many({"_id": {"$in": ids}}).deleted_count if ids else 0
    log.info(f"Bulk delete removed {deleted} products")
    return {"message": f"{deleted} products removed", "deleted": deleted}

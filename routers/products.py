from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pymongo.database import Database

import catalog
from auth import get_admin_user, get_current_user, get_optional_user, is_admin
from database import get_db
from errors import ValidationFailed
from schemas import BulkDelete, ReviewIn
from storage import MAX_IMAGES_PER_PRODUCT, ImageStorage, get_storage, present

router = APIRouter(prefix="/api/products", tags=["products"])


def _image_saver(storage: ImageStorage, images: Optional[List[UploadFile]]) -> Optional[catalog.ImageSaver]:
    """Count-check now; the catalog stores the files once the product is valid."""
    uploads = present(images)
    if len(uploads) > MAX_IMAGES_PER_PRODUCT:
        raise ValidationFailed(f"At most {MAX_IMAGES_PER_PRODUCT} images per product")
    if not uploads:
        return None
    return lambda: storage.save_all(uploads, field="images")


# ---------- Public ----------

@router.get("", response_model=dict)
def list_products(
    keyword: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    show_all: Optional[str] = Query(None, alias="showAll"),
    db: Database = Depends(get_db),
    user: Optional[dict] = Depends(get_optional_user),
) -> Any:
    page_n, limit_n, wants_all = catalog.parse_listing_params(page, limit, show_all)
    # Inactive products are only listed for admins
    return catalog.list_products(db, keyword, page_n, limit_n, show_all=wants_all and is_admin(user))


@router.get("/top", response_model=List[dict])
def top_products(db: Database = Depends(get_db)):
    return catalog.top_products(db)


@router.get("/{product_id}", response_model=dict)
def get_product(product_id: str, db: Database = Depends(get_db)):
    return catalog.get_product_detail(db, product_id)


@router.post("/{product_id}/reviews", status_code=201)
def add_review(
    product_id: str,
    review: ReviewIn,
    db: Database = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    catalog.add_review(db, product_id, user, review.rating, review.comment)
    return {"message": "Review added"}


# ---------- Admin ----------

@router.post("", status_code=201, response_model=dict)
def create_product(
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    subcategory: Optional[str] = Form(None),
    count_in_stock: Optional[str] = Form(None),
    discount: Optional[str] = Form(None),
    is_active: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Database = Depends(get_db),
    storage: ImageStorage = Depends(get_storage),
    admin: dict = Depends(get_admin_user),
):
    fields = {
        "name": name,
        "price": price,
        "description": description,
        "category": category,
        "subcategory": subcategory,
        "count_in_stock": count_in_stock,
        "discount": discount,
        "is_active": is_active,
    }
    missing = [f for f in catalog.REQUIRED_PRODUCT_FIELDS if fields.get(f) in (None, "")]
    if missing:
        raise ValidationFailed("Please fill in all required fields")
    return catalog.create_product(db, fields, admin, save_images=_image_saver(storage, images))


@router.put("/{product_id}", response_model=dict)
def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    subcategory: Optional[str] = Form(None),
    count_in_stock: Optional[str] = Form(None),
    discount: Optional[str] = Form(None),
    is_active: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Database = Depends(get_db),
    storage: ImageStorage = Depends(get_storage),
    admin: dict = Depends(get_admin_user),
):
    fields = {
        "name": name,
        "price": price,
        "description": description,
        "image": image,
        "category": category,
        "subcategory": subcategory,
        "count_in_stock": count_in_stock,
        "discount": discount,
        "is_active": is_active,
    }
    return catalog.update_product(db, product_id, fields, save_images=_image_saver(storage, images))


@router.delete("/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db), admin: dict = Depends(get_admin_user)):
    return catalog.delete_product(db, product_id)


@router.post("/bulk-delete")
def delete_products(body: BulkDelete, db: Database = Depends(get_db), admin: dict = Depends(get_admin_user)):
    return catalog.delete_products(db, body.ids)

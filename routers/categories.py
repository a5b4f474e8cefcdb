from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pymongo.database import Database

from auth import get_admin_user
from catalog import CATEGORIES, SUBCATEGORIES
from database import create_document, doc_to_dict, get_db, parse_object_id
from errors import NotFound, ValidationFailed
from logger import get_logger
from schemas import SubCategoryIn
from storage import ImageStorage, get_storage

log = get_logger("categories")

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=List[dict])
def list_categories(db: Database = Depends(get_db)):
    return [doc_to_dict(c) for c in db[CATEGORIES].find({"is_active": True})]


@router.post("", status_code=201, response_model=dict)
def create_category(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Database = Depends(get_db),
    storage: ImageStorage = Depends(get_storage),
    admin: dict = Depends(get_admin_user),
):
    if not name or not name.strip():
        raise ValidationFailed("Category name is required")
    image_ref = storage.save(image, field="image") if image is not None and image.filename else None
    new_id = create_document(
        CATEGORIES,
        {"name": name.strip(), "description": description, "image": image_ref, "is_active": True},
        database=db,
    )
    log.info(f"Category {new_id} created")
    return doc_to_dict(db[CATEGORIES].find_one({"_id": parse_object_id(new_id)}))


@router.post("/sub", status_code=201, response_model=dict)
def create_subcategory(body: SubCategoryIn, db: Database = Depends(get_db), admin: dict = Depends(get_admin_user)):
    try:
        cat_id = parse_object_id(body.category_id, "Category")
    except NotFound:
        raise ValidationFailed("Invalid category")
    if not db[CATEGORIES].find_one({"_id": cat_id}):
        raise ValidationFailed("Invalid category")
    new_id = create_document(
        SUBCATEGORIES,
        {"name": body.name, "category": cat_id, "is_active": True},
        database=db,
    )
    return doc_to_dict(db[SUBCATEGORIES].find_one({"_id": parse_object_id(new_id)}))


@router.get("/{category_id}/sub", response_model=List[dict])
def list_subcategories(category_id: str, db: Database = Depends(get_db)):
    cat_id = parse_object_id(category_id, "Category")
    return [doc_to_dict(s) for s in db[SUBCATEGORIES].find({"category": cat_id, "is_active": True})]


@router.delete("/sub/{subcategory_id}")
def delete_subcategory(subcategory_id: str, db: Database = Depends(get_db), admin: dict = Depends(get_admin_user)):
    sub_id = parse_object_id(subcategory_id, "SubCategory")
    if db[SUBCATEGORIES].delete_one({"_id": sub_id}).deleted_count == 0:
        raise NotFound("SubCategory not found")
    return {"message": "SubCategory removed"}


@router.delete("/{category_id}")
def delete_category(category_id: str, db: Database = Depends(get_db), admin: dict = Depends(get_admin_user)):
    cat_id = parse_object_id(category_id, "Category")
    if db[CATEGORIES].delete_one({"_id": cat_id}).deleted_count == 0:
        raise NotFound("Category not found")
    log.info(f"Category {cat_id} removed")
    return {"message": "Category removed"}

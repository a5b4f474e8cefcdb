from typing import List

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from auth import (
    USERS,
    create_token,
    get_admin_user,
    get_current_user,
    hash_password,
    public_user,
    verify_password,
)
from config import Settings, get_settings
from database import create_document, doc_to_dict, get_db, now, parse_object_id
from errors import NotFound, ValidationFailed
from logger import get_logger
from schemas import Address, UserLogin, UserProfileUpdate, UserRegister, UserStatusUpdate

log = get_logger("users")

router = APIRouter(prefix="/api/users", tags=["users"])

MAX_ADDRESSES = 4


def _auth_response(user: dict, settings: Settings) -> dict:
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "phone": user.get("phone"),
        "role": user.get("role", "user"),
        "token": create_token(user["_id"], user.get("role", "user"), settings),
    }


def _taken(db: Database, email, phone, exclude=None) -> bool:
    clauses = []
    if email:
        clauses.append({"email": email})
    if phone:
        clauses.append({"phone": phone})
    if not clauses:
        return False
    query = {"$or": clauses}
    if exclude is not None:
        query["_id"] = {"$ne": exclude}
    return db[USERS].find_one(query) is not None


def _save_addresses(db: Database, user_id, addresses: List[dict]) -> List[dict]:
    db[USERS].update_one({"_id": user_id}, {"$set": {"addresses": addresses, "updated_at": now()}})
    return doc_to_dict(addresses)


# ---------- Auth ----------

@router.post("/login")
def login(body: UserLogin, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    field = "email" if "@" in body.email_or_phone else "phone"
    user = db[USERS].find_one({field: body.email_or_phone})
    if not user or not verify_password(body.password, user.get("password", "")):
        raise HTTPException(status_code=401, detail="Invalid email/phone or password")
    if not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Account is disabled. Please contact admin.")
    return _auth_response(user, settings)


@router.post("", status_code=201)
def register(body: UserRegister, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    if body.password != body.confirm_password:
        raise ValidationFailed("Passwords do not match")
    if not body.email and not body.phone:
        raise ValidationFailed("Please provide either email or phone number")
    if _taken(db, body.email, body.phone):
        raise ValidationFailed("User already exists")

    new_id = create_document(
        USERS,
        {
            "name": body.name,
            "email": body.email,
            "phone": body.phone,
            "password": hash_password(body.password),
            "role": "user",
            "is_active": True,
            "addresses": [],
            "wishlist": [],
        },
        database=db,
    )
    log.info(f"User {new_id} registered")
    return _auth_response(db[USERS].find_one({"_id": ObjectId(new_id)}), settings)


# ---------- Profile ----------

@router.put("/profile")
def update_profile(
    body: UserProfileUpdate,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user: dict = Depends(get_current_user),
):
    changes = body.model_dump(exclude_none=True)
    if _taken(db, changes.get("email"), changes.get("phone"), exclude=user["_id"]):
        raise ValidationFailed("User already exists")
    if "password" in changes:
        changes["password"] = hash_password(changes["password"])
    changes["updated_at"] = now()
    db[USERS].update_one({"_id": user["_id"]}, {"$set": changes})
    return _auth_response(db[USERS].find_one({"_id": user["_id"]}), settings)


@router.get("/address")
def list_addresses(user: dict = Depends(get_current_user)):
    return doc_to_dict(user.get("addresses") or [])


@router.post("/address", status_code=201)
def add_address(body: Address, db: Database = Depends(get_db), user: dict = Depends(get_current_user)):
    addresses = list(user.get("addresses") or [])
    if len(addresses) >= MAX_ADDRESSES:
        raise ValidationFailed(f"You can only save up to {MAX_ADDRESSES} addresses")

    address = body.model_dump()
    address["_id"] = ObjectId()
    if address["is_default"]:
        for a in addresses:
            a["is_default"] = False
    elif not addresses:
        # First address is always default
        address["is_default"] = True

    addresses.append(address)
    return _save_addresses(db, user["_id"], addresses)


@router.put("/address/{address_id}")
def update_address(
    address_id: str,
    body: Address,
    db: Database = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    aid = parse_object_id(address_id, "Address")
    addresses = list(user.get("addresses") or [])
    target = next((a for a in addresses if a.get("_id") == aid), None)
    if target is None:
        raise NotFound("Address not found")

    changes = body.model_dump(exclude_unset=True)
    if changes.get("is_default"):
        for a in addresses:
            a["is_default"] = False
    target.update(changes)
    return _save_addresses(db, user["_id"], addresses)


@router.delete("/address/{address_id}")
def delete_address(address_id: str, db: Database = Depends(get_db), user: dict = Depends(get_current_user)):
    aid = parse_object_id(address_id, "Address")
    addresses = list(user.get("addresses") or [])
    remaining = [a for a in addresses if a.get("_id") != aid]
    if len(remaining) == len(addresses):
        raise NotFound("Address not found")
    if remaining and not any(a.get("is_default") for a in remaining):
        remaining[0]["is_default"] = True
    return _save_addresses(db, user["_id"], remaining)


# ---------- Admin ----------

@router.get("")
def list_users(db: Database = Depends(get_db), admin: dict = Depends(get_admin_user)):
    return [doc_to_dict(public_user(u)) for u in db[USERS].find({})]


@router.put("/{user_id}/status")
def update_user_status(
    user_id: str,
    body: UserStatusUpdate,
    db: Database = Depends(get_db),
    admin: dict = Depends(get_admin_user),
):
    uid = parse_object_id(user_id, "User")
    result = db[USERS].update_one({"_id": uid}, {"$set": {"is_active": body.is_active, "updated_at": now()}})
    if result.matched_count == 0:
        raise NotFound("User not found")
    user = db[USERS].find_one({"_id": uid})
    log.info(f"User {uid} is_active set to {body.is_active}")
    return {
        "id": str(uid),
        "name": user.get("name"),
        "email": user.get("email"),
        "is_active": user.get("is_active"),
    }

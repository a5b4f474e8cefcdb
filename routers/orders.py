from typing import List, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from auth import USERS, get_admin_user, get_current_user, is_admin
from database import create_document, doc_to_dict, get_db, now, parse_object_id
from errors import NotFound, ValidationFailed
from logger import get_logger
from payments import PaymentGateway, get_payment_gateway
from schemas import OrderIn, PaymentIntentIn, PaymentResult

log = get_logger("orders")

router = APIRouter(prefix="/api/orders", tags=["orders"])

ORDERS = "order"


def _populate_user(db: Database, orders: List[dict], fields: Sequence[str]) -> List[dict]:
    ids = list({o.get("user") for o in orders if o.get("user") is not None})
    projection = {f: 1 for f in fields}
    users = {u["_id"]: u for u in db[USERS].find({"_id": {"$in": ids}}, projection)} if ids else {}
    for o in orders:
        o["user"] = users.get(o.get("user"))
    return orders


def _get_order(db: Database, order_id: str) -> dict:
    order = db[ORDERS].find_one({"_id": parse_object_id(order_id, "Order")})
    if not order:
        raise NotFound("Order not found")
    return order


def _check_access(order: dict, user: dict, action: str) -> None:
    if order.get("user") != user["_id"] and not is_admin(user):
        raise HTTPException(status_code=403, detail=f"Not authorized to {action} this order")


@router.post("", status_code=201, response_model=dict)
def create_order(body: OrderIn, db: Database = Depends(get_db), user: dict = Depends(get_current_user)):
    if not body.order_items:
        raise ValidationFailed("No order items")

    items = []
    for item in body.order_items:
        data = item.model_dump()
        try:
            data["product"] = ObjectId(item.product)
        except InvalidId:
            raise ValidationFailed(f"Invalid product id: {item.product}")
        items.append(data)

    order_doc = {
        "order_items": items,
        "user": user["_id"],
        "shipping_address": body.shipping_address.model_dump(),
        "payment_method": body.payment_method,
        "items_price": body.items_price,
        "tax_price": body.tax_price,
        "shipping_price": body.shipping_price,
        "total_price": body.total_price,
        "is_paid": False,
        "is_delivered": False,
        "status": "pending",
    }
    new_id = create_document(ORDERS, order_doc, database=db)
    log.info(f"Order {new_id} created by user {user['_id']}")
    return doc_to_dict(db[ORDERS].find_one({"_id": ObjectId(new_id)}))


@router.get("/myorders", response_model=List[dict])
def my_orders(db: Database = Depends(get_db), user: dict = Depends(get_current_user)):
    return [doc_to_dict(o) for o in db[ORDERS].find({"user": user["_id"]}).sort("created_at", -1)]


@router.post("/razorpay")
def create_payment_intent(
    body: PaymentIntentIn,
    user: dict = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    return gateway.create_order(body.amount)


@router.get("", response_model=List[dict])
def list_orders(db: Database = Depends(get_db), admin: dict = Depends(get_admin_user)):
    orders = list(db[ORDERS].find({}).sort("created_at", -1))
    return [doc_to_dict(o) for o in _populate_user(db, orders, ("name",))]


@router.get("/{order_id}", response_model=dict)
def get_order(order_id: str, db: Database = Depends(get_db), user: dict = Depends(get_current_user)):
    order = _get_order(db, order_id)
    _check_access(order, user, "view")
    _populate_user(db, [order], ("name", "email"))
    return doc_to_dict(order)


@router.put("/{order_id}/pay", response_model=dict)
def pay_order(
    order_id: str,
    body: PaymentResult,
    db: Database = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    order = _get_order(db, order_id)
    _check_access(order, user, "pay")
    stamp = now()
    db[ORDERS].update_one(
        {"_id": order["_id"]},
        {"$set": {
            "is_paid": True,
            "paid_at": stamp,
            "payment_result": body.model_dump(),
            "updated_at": stamp,
        }},
    )
    log.info(f"Order {order['_id']} marked paid")
    return doc_to_dict(db[ORDERS].find_one({"_id": order["_id"]}))


@router.put("/{order_id}/deliver", response_model=dict)
def deliver_order(order_id: str, db: Database = Depends(get_db), admin: dict = Depends(get_admin_user)):
    order = _get_order(db, order_id)
    stamp = now()
    db[ORDERS].update_one(
        {"_id": order["_id"]},
        {"$set": {
            "is_delivered": True,
            "delivered_at": stamp,
            "status": "delivered",
            "updated_at": stamp,
        }},
    )
    log.info(f"Order {order['_id']} delivered")
    return doc_to_dict(db[ORDERS].find_one({"_id": order["_id"]}))

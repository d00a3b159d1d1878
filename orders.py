"""
Order workflow: create, list, fetch and update status.

Routes in main.py validate the request shape and resolve the caller; the
functions here run the domain checks and database calls and either return the
order data or raise ``APIError``.
"""
import logging
import math
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, EmailStr, Field
from starlette import status

import database
from auth import ensure_order_access
from responses import APIError
from schemas import ORDER_STATUSES, Order, OrderItem, ShippingAddress

logger = logging.getLogger(__name__)

PRODUCT_SUMMARY_FIELDS = {"name": 1, "price": 1, "images": 1}
USER_SUMMARY_FIELDS = {"name": 1, "email": 1}


# ===================== Request models =====================
class OrderItemRequest(BaseModel):
    product_id: Optional[str] = None
    quantity: int = Field(..., ge=1)
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None


class ShippingAddressRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class CreateOrderRequest(BaseModel):
    items: Optional[List[OrderItemRequest]] = None
    shipping_address: Optional[ShippingAddressRequest] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    payment_method: Optional[str] = None
    subtotal: Optional[float] = None
    tax: Optional[float] = None
    total: Optional[float] = None
    notes: Optional[str] = None


class ListOrdersQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)


class OrderIdParams(BaseModel):
    id: str


class UpdateOrderStatusRequest(BaseModel):
    status: Optional[str] = None


# ===================== Helpers =====================
def _bad_request(message: str) -> APIError:
    return APIError(status.HTTP_400_BAD_REQUEST, message)


def _insufficient_stock(product: dict, available: int, requested: int) -> APIError:
    return _bad_request(
        f"Insufficient stock for {product.get('name') or product.get('_id')}. Available: {available}, Requested: {requested}"
    )


def populate_order(order: dict, with_user: bool = False) -> dict:
    """Attach product summaries to each line item (and the owner summary when asked)."""
    products = database.get_documents_by_ids(
        "product", [i.get("product_id") for i in order.get("items", [])], PRODUCT_SUMMARY_FIELDS
    )
    order["items"] = [dict(item, product=products.get(item.get("product_id"))) for item in order.get("items", [])]
    if with_user:
        order["user"] = database.get_document_by_id("user", order.get("user_id"), USER_SUMMARY_FIELDS)
    return order


def _check_required_fields(payload: CreateOrderRequest) -> ShippingAddress:
    if not payload.items:
        raise _bad_request("Order must contain at least one item")

    if payload.shipping_address is None:
        raise _bad_request("Shipping address is required")

    addr = payload.shipping_address
    if not all([addr.first_name, addr.last_name, addr.address, addr.city, addr.state, addr.zip_code]):
        raise _bad_request("All shipping address fields are required")

    if not payload.email:
        raise _bad_request("Email is required")
    if not payload.phone:
        raise _bad_request("Phone number is required")
    if not payload.payment_method:
        raise _bad_request("Payment method is required")

    if payload.subtotal is None or payload.tax is None or payload.total is None:
        raise _bad_request("Subtotal, tax, and total are required")

    return ShippingAddress(**addr.model_dump())


def _check_items(items: List[OrderItemRequest]) -> List[Tuple[OrderItem, dict]]:
    """Validate every line against current stock without touching it."""
    remaining: Dict[str, int] = {}
    checked = []
    for item in items:
        if not item.product_id:
            raise _bad_request("Product ID is required for all items")
        if not database.is_valid_id(item.product_id):
            raise _bad_request("Invalid product ID")

        product = database.get_document_by_id("product", item.product_id)
        if not product:
            raise APIError(status.HTTP_404_NOT_FOUND, f"Product {item.product_id} not found")

        available = remaining.get(product["_id"], product.get("stock", 0))
        if available < item.quantity:
            raise _insufficient_stock(product, available, item.quantity)
        remaining[product["_id"]] = available - item.quantity

        images = product.get("images") or []
        line = OrderItem(
            product_id=product["_id"],
            name=item.name or product.get("name"),
            price=item.price or product.get("price"),
            quantity=item.quantity,
            image=item.image or (images[0] if images else ""),
        )
        checked.append((line, product))
    return checked


def _release(reserved: List[OrderItem]) -> None:
    for line in reserved:
        logger.warning("Releasing %s unit(s) of product %s", line.quantity, line.product_id)
        database.release_stock(line.product_id, line.quantity)


def _reserve(checked: List[Tuple[OrderItem, dict]]) -> List[OrderItem]:
    reserved: List[OrderItem] = []
    try:
        for line, product in checked:
            if not database.reserve_stock(line.product_id, line.quantity):
                # lost a race with another purchase
                current = database.get_document_by_id("product", line.product_id) or product
                raise _insufficient_stock(current, current.get("stock", 0), line.quantity)
            reserved.append(line)
    except Exception:
        _release(reserved)
        raise
    return reserved


# ===================== Operations =====================
def create_order(user_id: str, payload: CreateOrderRequest) -> dict:
    shipping_address = _check_required_fields(payload)
    checked = _check_items(payload.items)
    reserved = _reserve(checked)

    order = Order(
        user_id=user_id,
        items=reserved,
        shipping_address=shipping_address,
        email=payload.email,
        phone=payload.phone,
        payment_method=payload.payment_method,
        subtotal=payload.subtotal,
        tax=payload.tax,
        total=payload.total,
        notes=payload.notes or "",
        status="pending",
    )
    try:
        order_id = database.create_document("order", order)
    except Exception:
        _release(reserved)
        raise

    logger.info("Order %s created for user %s with %d item(s)", order_id, user_id, len(reserved))
    return populate_order(database.get_document_by_id("order", order_id))


def list_orders(user_id: str, page: int = 1, limit: int = 10) -> dict:
    filt = {"user_id": user_id}
    orders = database.get_documents(
        "order", filt, limit=limit, skip=(page - 1) * limit, sort=[("created_at", -1), ("_id", -1)]
    )
    total = database.count_documents("order", filt)
    return {
        "orders": [populate_order(o) for o in orders],
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit),
    }


def get_order(order_id: str, user: dict) -> dict:
    if not database.is_valid_id(order_id):
        raise _bad_request("Invalid order ID")

    order = database.get_document_by_id("order", order_id)
    if not order:
        raise APIError(status.HTTP_404_NOT_FOUND, "Order not found")

    order = populate_order(order, with_user=True)
    ensure_order_access(order, user)
    return order


def update_order_status(order_id: str, new_status: Optional[str] = None) -> dict:
    if not database.is_valid_id(order_id):
        raise _bad_request("Invalid order ID")

    if new_status and new_status not in ORDER_STATUSES:
        raise _bad_request(f"Status must be one of: {', '.join(ORDER_STATUSES)}")

    order = database.get_document_by_id("order", order_id)
    if not order:
        raise APIError(status.HTTP_404_NOT_FOUND, "Order not found")

    changes = {}
    if new_status:
        changes["status"] = new_status
    database.update_document("order", order_id, changes)
    if new_status and new_status != order.get("status"):
        logger.info("Order %s status %s -> %s", order_id, order.get("status"), new_status)

    return populate_order(database.get_document_by_id("order", order_id))

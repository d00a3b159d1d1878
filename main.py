import logging
import os

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from starlette import status

import database
import orders
from auth import get_current_user, require_admin
from orders import CreateOrderRequest, ListOrdersQuery, OrderIdParams, UpdateOrderStatusRequest
from responses import handle_failures, register_exception_handlers, success_response
from validation import validate_body, validate_params, validate_query

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Storefront Orders API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# ===================== Public Endpoints =====================
@app.get("/")
def root():
    return {"message": "Storefront Orders API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
    return response


# ===================== Orders =====================
@app.post("/orders")
@handle_failures("Failed to create order")
def create_order(
    user: dict = Depends(get_current_user),
    payload: CreateOrderRequest = Depends(validate_body(CreateOrderRequest)),
):
    order = orders.create_order(user["_id"], payload)
    return success_response(order, "Order created successfully", status.HTTP_201_CREATED)


@app.get("/orders")
@handle_failures("Failed to fetch orders")
def list_my_orders(
    user: dict = Depends(get_current_user),
    query: ListOrdersQuery = Depends(validate_query(ListOrdersQuery)),
):
    result = orders.list_orders(user["_id"], page=query.page, limit=query.limit)
    return success_response(result, "Orders fetched successfully")


@app.get("/orders/{id}")
@handle_failures("Failed to fetch order")
def get_order(
    user: dict = Depends(get_current_user),
    params: OrderIdParams = Depends(validate_params(OrderIdParams)),
):
    order = orders.get_order(params.id, user)
    return success_response(order, "Order fetched successfully")


@app.put("/admin/orders/{id}/status")
@handle_failures("Failed to update order")
def update_order_status(
    admin: dict = Depends(require_admin),
    params: OrderIdParams = Depends(validate_params(OrderIdParams)),
    payload: UpdateOrderStatusRequest = Depends(validate_body(UpdateOrderStatusRequest)),
):
    order = orders.update_order_status(params.id, payload.status)
    return success_response(order, "Order updated successfully")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)

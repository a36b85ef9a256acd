"""
Action dispatcher for the storefront API.
GET reads the action from the query string, POST/PUT/DELETE from the JSON body.
"""

from contextlib import contextmanager

from flask import Blueprint, current_app, jsonify, request
import logging

from tamales.models import db
from tamales.services.email_service import (
    ResendEmailSender,
    send_order_emails,
    send_verification_email,
)
from tamales.services.store_service import InsufficientInventoryError, Store

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
    "Access-Control-Allow-Headers": "Content-Type",
}


def _error(message, status):
    logger.warning(f"{request.method} {request.path}: {message}")
    return jsonify({"error": message}), status


def _store():
    return Store(db.session)


@contextmanager
def _email_sender():
    sender = current_app.extensions.get("email_sender")
    if sender is not None:
        yield sender
        return
    with ResendEmailSender.from_config(current_app.config) as sender:
        yield sender


def _is_text(value):
    return isinstance(value, str) and value.strip() != ""


def _parse_order_id(value):
    """Whole numbers only: ints (not bools) or strings of digits."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def answer_preflight():
    """Answers every OPTIONS request under /api with the permissive CORS headers."""
    if request.method != "OPTIONS":
        return None
    response = current_app.response_class(status=200, headers=CORS_HEADERS)
    del response.headers["Content-Type"]
    return response


# ---------------------------
# Operations
# ---------------------------
def get_user(params):
    email = params.get("email")
    if not _is_text(email):
        return _error("Email parameter required", 400)
    return jsonify({"user": _store().get_user(email)})


def get_orders(params):
    email = params.get("email")
    if not _is_text(email):
        return _error("Email parameter required", 400)
    return jsonify({"orders": _store().list_orders(email)})


def get_inventory(params):
    try:
        inventory = _store().get_inventory()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error getting inventory: {e}")
        inventory = {}
    return jsonify({"inventory": inventory})


def create_user(params):
    name = params.get("name")
    email = params.get("email")
    if not name or not _is_text(email):
        return _error("Name and email required", 400)

    _store().upsert_user(
        name=name,
        email=email,
        birthday=params.get("birthday"),
        phone=params.get("phone"),
        verification_code=params.get("verification_code"),
        code_created_at=params.get("code_created_at"),
    )
    return jsonify({"success": True})


def update_verification(params):
    email = params.get("email")
    if not _is_text(email):
        return _error("Email required", 400)
    _store().update_verification(email, params.get("verification_code"), params.get("code_created_at"))
    return jsonify({"success": True})


def verify_user(params):
    email = params.get("email")
    code = params.get("code")
    if not _is_text(email) or not code:
        return _error("Email and code required", 400)

    user = _store().verify_user(email, str(code))
    if user is None:
        return jsonify({"success": False, "error": "Invalid code"}), 400
    return jsonify({"success": True, "user": user})


def create_order(params):
    user_email = params.get("user_email")
    items = params.get("items")
    grand_total = params.get("grand_total")
    if not user_email or not items or grand_total is None:
        return _error("Missing order fields", 400)
    if not _is_text(user_email):
        return _error("Invalid user_email", 400)
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        return _error("Items must be a list of line items", 400)
    try:
        grand_total = float(grand_total)
    except (TypeError, ValueError):
        return _error("Invalid grand_total", 400)

    try:
        order_id = _store().create_order(
            user_email=user_email,
            items=items,
            grand_total=grand_total,
            user_name=params.get("user_name"),
            user_phone=params.get("user_phone"),
            created_at=params.get("created_at"),
        )
    except InsufficientInventoryError as e:
        return _error(str(e), 409)

    logger.info(f"Order {order_id} created for {user_email.lower()}")
    return jsonify({"success": True, "orderId": order_id})


def delete_order(params):
    order_id = params.get("orderId")
    user_email = params.get("userEmail")
    if not order_id or not user_email:
        return _error("Order ID and email required", 400)
    if not _is_text(user_email):
        return _error("Invalid email", 400)
    order_id = _parse_order_id(order_id)
    if order_id is None:
        return _error("Invalid order ID", 400)

    if not _store().delete_order(order_id, user_email):
        return _error("Order not found or unauthorized", 404)

    logger.info(f"Order {order_id} deleted by {user_email.lower()}")
    return jsonify({"success": True})


def send_verification(params):
    email = params.get("email")
    code = params.get("code")
    if not _is_text(email) or not code:
        return _error("Email and code required", 400)
    with _email_sender() as sender:
        send_verification_email(sender, email, str(code), params.get("name"))
    return jsonify({"success": True})


def send_order_notifications(params):
    order = params.get("order")
    if not isinstance(order, dict) or not order.get("email") or not order.get("items"):
        return _error("Invalid order payload", 400)
    items = order["items"]
    if not _is_text(order["email"]) or not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        return _error("Invalid order payload", 400)
    with _email_sender() as sender:
        send_order_emails(sender, order, current_app.config["ADMIN_EMAIL"])
    return jsonify({"success": True})


ACTIONS = {
    "GET": {
        "getUser": get_user,
        "getOrders": get_orders,
        "getInventory": get_inventory,
    },
    "POST": {
        "sendVerificationEmail": send_verification,
        "sendOrderEmails": send_order_notifications,
        "createUser": create_user,
        "updateVerification": update_verification,
        "verifyUser": verify_user,
        "createOrder": create_order,
    },
    "PUT": {
        "updateVerification": update_verification,
    },
    "DELETE": {
        "deleteOrder": delete_order,
    },
}


def run_operation(operation, params):
    """Runs one operation; anything unexpected becomes a 500 with the message."""
    try:
        return operation(params)
    except Exception as e:
        logger.error(f"API error in {operation.__name__}: {e}")
        return jsonify({"error": str(e)}), 500


api_bp.before_request(answer_preflight)


@api_bp.route("", methods=["GET", "POST", "PUT", "DELETE"])
def dispatch():
    if request.method == "GET":
        params = request.args
        action = params.get("action")
    else:
        params = request.get_json(silent=True)
        if not isinstance(params, dict):
            params = {}
        action = params.get("action") or request.args.get("action")
    if not isinstance(action, str):
        action = None

    operation = ACTIONS.get(request.method, {}).get(action)
    if operation is None:
        return _error("Invalid action or method", 400)
    return run_operation(operation, params)

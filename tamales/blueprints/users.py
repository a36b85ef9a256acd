# tamales/blueprints/users.py
from flask import Blueprint, request

from tamales.blueprints.api import (
    answer_preflight,
    create_user,
    get_user,
    run_operation,
    update_verification,
    verify_user,
)

users_bp = Blueprint("users", __name__)
users_bp.before_request(answer_preflight)


def _body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@users_bp.get("/users")
def read_user():
    return run_operation(get_user, request.args)


@users_bp.post("/users")
def save_user():
    return run_operation(create_user, _body())


@users_bp.put("/users/verification")
def save_verification():
    return run_operation(update_verification, _body())


@users_bp.post("/users/verify")
def confirm_user():
    return run_operation(verify_user, _body())

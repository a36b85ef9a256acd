"""
Store gateway for users, orders and inventory.
Every value is bound as a statement parameter; rows come back as plain dicts.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import json
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite

from tamales.models import InventoryItem, Order, User

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class UnsupportedDialectError(RuntimeError):
    """The database has no INSERT ... ON CONFLICT support we know how to use."""


class InsufficientInventoryError(Exception):
    """An order asked for more of an item than is left."""

    def __init__(self, tamale_id: str, name: Optional[str] = None):
        self.tamale_id = tamale_id
        self.name = name
        super().__init__(f"Not enough inventory for {name or tamale_id}")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Store:
    """Query/insert/update/delete operations bound to one SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect]
        except KeyError:
            raise UnsupportedDialectError(f"Upsert not supported for dialect {dialect!r}") from None

    # ----- users -----

    def get_user(self, email: str) -> Optional[Dict[str, Any]]:
        user = self.session.execute(
            select(User).where(User.email == normalize_email(email))
        ).scalar_one_or_none()
        return user.to_dict() if user else None

    def upsert_user(self, name: str, email: str, birthday=None, phone=None,
                    verification_code=None, code_created_at=None) -> None:
        """
        Inserts the user (verified=false) or updates the profile and code
        fields of the existing row, in a single statement keyed by email.
        """
        profile = {
            "name": name,
            "birthday": birthday,
            "phone": phone,
            "verification_code": verification_code,
            "code_created_at": code_created_at,
        }
        stmt = self._insert()(User.__table__).values(
            email=normalize_email(email), verified=False, created_at=_now(), **profile
        )
        stmt = stmt.on_conflict_do_update(index_elements=["email"], set_=profile)
        try:
            self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def update_verification(self, email: str, verification_code, code_created_at) -> int:
        stmt = (
            update(User)
            .where(User.email == normalize_email(email))
            .values(verification_code=verification_code, code_created_at=code_created_at)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount

    def verify_user(self, email: str, code: str) -> Optional[Dict[str, Any]]:
        """Marks the user verified when the code matches; None otherwise."""
        email = normalize_email(email)
        stmt = (
            update(User)
            .where(User.email == email, User.verification_code == code)
            .values(verified=True)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        if result.rowcount == 0:
            return None
        return self.get_user(email)

    # ----- orders -----

    def list_orders(self, email: str) -> List[Dict[str, Any]]:
        rows = self.session.execute(
            select(Order)
            .where(Order.user_email == normalize_email(email))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).scalars()
        return [o.to_dict() for o in rows]

    def create_order(self, user_email: str, items: List[Dict[str, Any]], grand_total: float,
                     user_name=None, user_phone=None, created_at=None) -> int:
        """
        Inserts the order and decrements inventory in one transaction.

        Returns:
            int: id of the new order

        Raises:
            InsufficientInventoryError: a tracked item has fewer units left
                than requested; nothing is written
        """
        order = Order(
            user_email=normalize_email(user_email),
            user_name=user_name,
            user_phone=user_phone,
            items=json.dumps(items),
            grand_total=grand_total,
            created_at=created_at or _now(),
        )
        try:
            self.session.add(order)
            self.session.flush()
            self._decrement_inventory(items)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return order.id

    def _decrement_inventory(self, items: List[Dict[str, Any]]) -> None:
        for item in items:
            tamale_id = item.get("id")
            qty = int(item.get("qty") or 0)
            if tamale_id is None or qty <= 0:
                continue
            tamale_id = str(tamale_id)
            result = self.session.execute(
                update(InventoryItem)
                .where(InventoryItem.tamale_id == tamale_id, InventoryItem.remaining >= qty)
                .values(remaining=InventoryItem.remaining - qty)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                continue
            tracked = self.session.execute(
                select(InventoryItem.tamale_id).where(InventoryItem.tamale_id == tamale_id)
            ).first()
            if tracked:
                raise InsufficientInventoryError(tamale_id, item.get("name"))

    def delete_order(self, order_id: int, user_email: str) -> bool:
        """Deletes only when the order belongs to user_email."""
        stmt = (
            delete(Order)
            .where(Order.id == order_id, Order.user_email == normalize_email(user_email))
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount > 0

    # ----- inventory -----

    def get_inventory(self) -> Dict[str, int]:
        rows = self.session.execute(select(InventoryItem.tamale_id, InventoryItem.remaining))
        return {tamale_id: remaining for tamale_id, remaining in rows}

    def set_inventory(self, counts: Dict[Any, int]) -> None:
        insert = self._insert()
        try:
            for tamale_id, remaining in counts.items():
                stmt = insert(InventoryItem.__table__).values(tamale_id=str(tamale_id), remaining=int(remaining))
                self.session.execute(
                    stmt.on_conflict_do_update(index_elements=["tamale_id"], set_={"remaining": int(remaining)})
                )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

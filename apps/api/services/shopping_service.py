"""
Shopping List Store

Per-user items. Listing puts unpurchased items first, most recently
updated first within each group.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.exceptions import ForbiddenError, NotFoundError
from models import ShoppingItem

ITEM_FIELDS = ("name", "quantity", "purchased")


def _get_owned_item(db: Session, user_id: UUID, item_id: UUID) -> ShoppingItem:
    item = db.query(ShoppingItem).filter(ShoppingItem.id == item_id).first()
    if not item:
        raise NotFoundError("Item")
    if item.user_id != user_id:
        raise ForbiddenError("You cannot access this item")
    return item


def list_items(db: Session, user_id: UUID) -> List[ShoppingItem]:
    return (
        db.query(ShoppingItem)
        .filter(ShoppingItem.user_id == user_id)
        .order_by(ShoppingItem.purchased.asc(), ShoppingItem.updated_at.desc())
        .all()
    )


def create_item(
    db: Session,
    user_id: UUID,
    name: str,
    quantity: Optional[str] = None,
    purchased: Optional[bool] = None,
) -> ShoppingItem:
    item = ShoppingItem(user_id=user_id, name=name, quantity=quantity, purchased=bool(purchased))
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_item(db: Session, user_id: UUID, item_id: UUID, changes: dict) -> ShoppingItem:
    """Partial update; quantity may be cleared with None."""
    item = _get_owned_item(db, user_id, item_id)
    for field, value in changes.items():
        if field not in ITEM_FIELDS:
            continue
        if value is None and field != "quantity":
            continue
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    return item


def toggle_item(db: Session, user_id: UUID, item_id: UUID, purchased: Optional[bool] = None) -> ShoppingItem:
    item = _get_owned_item(db, user_id, item_id)
    item.purchased = (not item.purchased) if purchased is None else purchased
    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, user_id: UUID, item_id: UUID) -> None:
    item = _get_owned_item(db, user_id, item_id)
    db.delete(item)
    db.commit()

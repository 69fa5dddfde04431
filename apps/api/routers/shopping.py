"""
Shopping list API Router
"""
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import User
from schemas import (
    ShoppingItemCreate,
    ShoppingItemEnvelope,
    ShoppingItemResponse,
    ShoppingItemToggle,
    ShoppingItemUpdate,
    ShoppingListEnvelope,
)
from services import shopping_service

router = APIRouter(prefix="/shopping-items", tags=["Shopping"])


@router.get("", response_model=ShoppingListEnvelope)
def list_items(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Unpurchased first, then most recently updated."""
    items = shopping_service.list_items(db, current_user.id)
    return ShoppingListEnvelope(items=[ShoppingItemResponse.model_validate(i) for i in items])


@router.post("", response_model=ShoppingItemEnvelope, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: ShoppingItemCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = shopping_service.create_item(
        db, current_user.id, payload.name, payload.quantity, payload.purchased
    )
    return ShoppingItemEnvelope(item=ShoppingItemResponse.model_validate(item))


@router.put("/{item_id}", response_model=ShoppingItemEnvelope)
def update_item(
    item_id: UUID,
    payload: ShoppingItemUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = shopping_service.update_item(
        db, current_user.id, item_id, payload.model_dump(exclude_unset=True)
    )
    return ShoppingItemEnvelope(item=ShoppingItemResponse.model_validate(item))


@router.patch("/{item_id}/toggle", response_model=ShoppingItemEnvelope)
def toggle_item(
    item_id: UUID,
    payload: Optional[ShoppingItemToggle] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = shopping_service.toggle_item(
        db, current_user.id, item_id, payload.purchased if payload else None
    )
    return ShoppingItemEnvelope(item=ShoppingItemResponse.model_validate(item))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    shopping_service.delete_item(db, current_user.id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

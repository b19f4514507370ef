#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import http_error
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import Envelope, CartItemIn, CartItemUpdate, CartOut
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=Envelope[CartOut])
def get_cart(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return {"success": True, "data": svc.get_cart(user_id)}
    except StoreError as e:
        raise http_error(e)


@router.post("/items", response_model=Envelope[CartOut])
def add_item(
    payload: CartItemIn,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        cart = svc.add_product(user_id=user_id, product_id=payload.product_id, quantity=payload.quantity)
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": cart, "message": "Item added to cart"}


@router.patch("/items/{item_id}", response_model=Envelope[CartOut])
def update_item(
    item_id: int,
    payload: CartItemUpdate,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        cart = svc.update_item(user_id, item_id, payload.quantity)
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": cart, "message": "Cart updated"}


@router.delete("/items/{item_id}", response_model=Envelope[CartOut])
def remove_item(
    item_id: int,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        cart = svc.remove_item(user_id, item_id)
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": cart, "message": "Item removed from cart"}


@router.delete("", response_model=Envelope[CartOut])
def clear_cart(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        cart = svc.clear(user_id)
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": cart, "message": "Cart cleared"}

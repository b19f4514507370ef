from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import http_error
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import Envelope, UserCreate, UserOut, AddressIn, AddressOut
from storefront.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=Envelope[UserOut], status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return {"success": True, "data": service.create_user(payload), "message": "User created"}
    except StoreError as e:
        raise http_error(e)


@router.get("/{user_id}", response_model=Envelope[UserOut])
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return {"success": True, "data": service.get_user(user_id)}
    except StoreError as e:
        raise http_error(e)


@router.post("/{user_id}/addresses", response_model=Envelope[AddressOut], status_code=201)
def add_address(user_id: int, payload: AddressIn, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return {"success": True, "data": service.add_address(user_id, payload), "message": "Address added"}
    except StoreError as e:
        raise http_error(e)


@router.get("/{user_id}/addresses", response_model=Envelope[List[AddressOut]])
def list_addresses(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return {"success": True, "data": service.list_addresses(user_id)}
    except StoreError as e:
        raise http_error(e)

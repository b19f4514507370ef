from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.data.models.address import AddressModel
from storefront.domain.errors import NotFound, ValidationError
from storefront.domain.schemas import UserCreate, UserOut, AddressIn
from storefront.repos.user_repo import UserRepo
from storefront.services.serializers import address_to_dict


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserOut:
        if self.repo.get_user_by_email(payload.email):
            raise ValidationError("Email is already registered")

        user = UserModel(name=payload.name, email=payload.email)
        created = self.repo.create_user(user)
        return UserOut(id=created.id, name=created.name, email=created.email)

    def get_user(self, user_id: int) -> UserOut:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        return UserOut(id=user.id, name=user.name, email=user.email)

    def add_address(self, user_id: int, payload: AddressIn) -> Dict[str, Any]:
        self.get_user(user_id)

        address = AddressModel(user_id=user_id, **payload.model_dump())
        created = self.repo.create_address(address)
        return address_to_dict(created)

    def list_addresses(self, user_id: int) -> list[Dict[str, Any]]:
        self.get_user(user_id)
        return [address_to_dict(a) for a in self.repo.list_addresses(user_id)]

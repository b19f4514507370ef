from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import NotFound, ValidationError
from storefront.domain.schemas import ProductCreate
from storefront.repos.product_repo import ProductRepo
from storefront.services.serializers import product_to_dict
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)

    def get_product(self, product_id: int) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFound("Product not found")
        return product_to_dict(product)

    def create_product(self, payload: ProductCreate) -> Dict[str, Any]:
        if payload.sale_price is not None and payload.sale_price >= payload.price:
            raise ValidationError("Sale price must be lower than price")

        data = payload.model_dump()
        data["availability"] = payload.availability.value
        try:
            created = self.repo.create_product(ProductModel(**data))
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("Product with this link or SKU already exists")

        logger.info(f"Product {created.id} ({created.sku}) created")
        return product_to_dict(created)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import http_error, require_admin
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import Envelope, ProductCreate, ProductOut
from storefront.services.product_service import ProductService

router = APIRouter(tags=["products"])


@router.get("/api/products/{product_id}", response_model=Envelope[ProductOut])
def get_product(product_id: int, db: Session = Depends(get_db)):
    svc = ProductService(db)
    try:
        return {"success": True, "data": svc.get_product(product_id)}
    except StoreError as e:
        raise http_error(e)


@router.post(
    "/api/admin/products",
    response_model=Envelope[ProductOut],
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    svc = ProductService(db)
    try:
        return {"success": True, "data": svc.create_product(payload), "message": "Product created"}
    except StoreError as e:
        raise http_error(e)

# storefront/api/routers/admin_payments.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import http_error, require_admin
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import Envelope, PaymentLedgerOut
from storefront.domain.status import PaymentStatus
from storefront.services.payment_ledger_service import PaymentLedgerService

router = APIRouter(
    prefix="/api/admin/payments",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=Envelope[PaymentLedgerOut])
def list_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[PaymentStatus] = Query(None),
    payment_method: Optional[str] = Query(None, max_length=20),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        result = PaymentLedgerService(db).list_payments(
            page=page,
            limit=limit,
            status=status.value if status else None,
            payment_method=payment_method,
            start_date=start_date,
            end_date=end_date,
        )
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": result}

# storefront/services/payment_ledger_service.py
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.domain.errors import ValidationError
from storefront.domain.pricing import format_money
from storefront.domain.status import PaymentStatus
from storefront.repos.payment_repo import PaymentRepo
from storefront.services.serializers import ledger_entry_to_dict
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#summary bucket -> payment statuses counted in it
SUMMARY_BUCKETS = {
    "total_successful": (PaymentStatus.SUCCESS.value,),
    "total_failed": (PaymentStatus.FAILED.value,),
    "total_pending": (PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value),
    "total_refunded": (PaymentStatus.REFUNDED.value, PaymentStatus.PARTIALLY_REFUNDED.value),
}


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


class PaymentLedgerService:
    """Read-only view of every payment for the admin dashboard."""

    def __init__(self, db: Session):
        self.repo = PaymentRepo(db)

    def list_payments(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        payment_method: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Dict[str, Any]:
        start_date, end_date = _as_utc(start_date), _as_utc(end_date)
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must not be after endDate")

        payments, total = self.repo.list_payments(
            status=status,
            payment_method=payment_method,
            created_from=start_date,
            created_to=end_date,
            offset=(page - 1) * limit,
            limit=limit,
        )
        logger.info(f"Payment ledger page {page}: {len(payments)} of {total} payments")

        return {
            "payments": [ledger_entry_to_dict(p) for p in payments],
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit) if total else 0,
                "total_items": total,
            },
            "summary": self.summary(),
        }

    def summary(self) -> Dict[str, str]:
        """Amount totals per bucket over the whole ledger, filters not applied."""
        by_status = self.repo.sum_amount_by_status()
        return {
            bucket: format_money(
                sum((Decimal(str(by_status.get(s) or 0)) for s in statuses), Decimal("0"))
            )
            for bucket, statuses in SUMMARY_BUCKETS.items()
        }

# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.database import SessionLocal
from storefront.data.models import UserModel, AddressModel, ProductModel

DEMO_PRODUCTS = [
    {"title": "Arduino Uno R3", "link": "arduino-uno-r3", "brand": "Arduino", "sku": "ARD-UNO-R3",
     "price": Decimal("1000.00"), "sale_price": None, "stock_quantity": 25},
    {"title": "SG90 Micro Servo", "link": "sg90-micro-servo", "brand": "TowerPro", "sku": "SRV-SG90",
     "price": Decimal("300.00"), "sale_price": Decimal("250.00"), "stock_quantity": 100},
    {"title": "HC-SR04 Ultrasonic Sensor", "link": "hc-sr04", "brand": None, "sku": "SNS-HCSR04",
     "price": Decimal("120.00"), "sale_price": None, "stock_quantity": 60},
]


def seed(db: Session | None = None):
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return

        for data in DEMO_PRODUCTS:
            db.add(ProductModel(availability="IN_STOCK", is_active=True, **data))

        user = UserModel(name="Demo Customer", email="demo@example.com")
        db.add(user)
        db.flush()
        db.add(
            AddressModel(
                user_id=user.id,
                full_name="Demo Customer",
                phone="9876543210",
                line1="12 MG Road",
                city="Bengaluru",
                state="Karnataka",
                postal_code="560001",
                country="IN",
            )
        )
        db.commit()
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()

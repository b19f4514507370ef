# storefront/main.py
import uvicorn

from storefront.api import create_app
from storefront.data.database import Base, engine
import storefront.data.models  # noqa: F401  registers every model on Base.metadata
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
except Exception:
    logger.exception("Failed to create database tables")
    raise


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

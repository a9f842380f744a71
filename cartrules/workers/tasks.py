from celery import Celery

from ..config import settings
from ..database import get_sessionmaker
from ..rules.repository import log_rule_execution
from ..utils.logging import logger

celery = Celery("cartrules", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
)

@celery.task(name="record_rule_execution", autoretry_for=(Exception,), retry_backoff=True, max_retries=5)
def record_rule_execution(data: dict):
    """Persist one storefront execution report. Analytics only."""
    SessionLocal = get_sessionmaker()
    with SessionLocal() as db:
        try:
            row = log_rule_execution(
                db,
                rule_id=data["rule_id"],
                session_id=data["session_id"],
                cart_token=data.get("cart_id"),
                shop=data.get("shop"),
                customer_id=data.get("customer_id"),
            )
            db.commit()
            row_id = row.id
        except Exception:
            db.rollback()
            raise
    logger.info("Recorded execution of rule %s (session %s)", data["rule_id"], data["session_id"])
    return {"ok": True, "id": row_id}

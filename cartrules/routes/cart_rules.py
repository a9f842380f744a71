# cartrules/routes/cart_rules.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from ..database import get_db
from ..schemas import ExecutionInput
from ..rules.repository import get_active_rules, rule_payload
from ..utils.shopify import normalize_shop
from ..workers.tasks import record_rule_execution

router = APIRouter(prefix="/api", tags=["cart-rules"])

@router.get("/cart-rules")
def list_cart_rules(shop: str | None = Query(None), db: Session = Depends(get_db)):
    """Active rules for a shop, in the shape the storefront engine parses."""
    try:
        shop = normalize_shop(shop)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    rows = get_active_rules(db, shop)
    return {"rules": [rule_payload(r) for r in rows]}

@router.post("/cart-rules")
def track_execution(payload: ExecutionInput):
    # fire-and-forget Celery job
    record_rule_execution.delay(payload.model_dump())
    return {"success": True}

# cartrules/rules/repository.py
from typing import Optional
from sqlalchemy import select, or_
from sqlalchemy.orm import Session
from ..models import CartRule, RuleExecution

def get_rules(db: Session, shop: str) -> list[CartRule]:
    return list(db.execute(
        select(CartRule).where(CartRule.shop == shop).order_by(CartRule.created_at.desc(), CartRule.id.desc())
    ).scalars())

def get_active_rules(db: Session, shop: str) -> list[CartRule]:
    # declaration order: the engine evaluates rules in the order served
    return list(db.execute(
        select(CartRule).where(CartRule.shop == shop, CartRule.status == "active").order_by(CartRule.id)
    ).scalars())

def log_rule_execution(db: Session, rule_id: str, session_id: str,
                       cart_token: Optional[str] = None, shop: Optional[str] = None,
                       customer_id: Optional[str] = None) -> RuleExecution:
    row = RuleExecution(rule_id=rule_id, session_id=session_id, cart_token=cart_token,
                        shop=shop, customer_id=customer_id, executed=True)
    db.add(row)
    return row

def has_rule_executed(db: Session, rule_id: str, customer_id: Optional[str] = None,
                      session_id: Optional[str] = None) -> bool:
    """Analytics lookup; the storefront engine never consults it."""
    conds = []
    if customer_id:
        conds.append(RuleExecution.customer_id == customer_id)
    if session_id:
        conds.append(RuleExecution.session_id == session_id)
    if not conds:
        return False
    row = db.execute(
        select(RuleExecution.id).where(RuleExecution.rule_id == rule_id, or_(*conds)).limit(1)
    ).scalar_one_or_none()
    return row is not None

def rule_payload(r: CartRule) -> dict:
    return {
        "id": str(r.id),
        "name": r.name,
        "minCartValue": float(r.min_cart_value or 0),
        "hasUpperLimit": bool(r.has_upper_limit),
        "maxCartValue": float(r.max_cart_value) if r.max_cart_value is not None else None,
        "productIds": r.product_ids,
        "worksInReverse": bool(r.works_in_reverse),
        "allowMultipleTriggers": bool(r.allow_multiple_triggers),
        "executeOncePerSession": bool(r.execute_once_per_session),
        "preventQuantityChanges": bool(r.prevent_quantity_changes),
        "status": r.status,
    }

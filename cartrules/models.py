from __future__ import annotations
from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String, Integer, BigInteger, DateTime, Numeric, Text, Boolean, func, Index, text
)
from .database import Base

# ----------------------------
# Merchant cart rules
# ----------------------------
class CartRule(Base):
    __tablename__ = "cart_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    min_cart_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"), server_default="0")
    has_upper_limit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    max_cart_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    product_ids: Mapped[str] = mapped_column(Text, nullable=False, default="[]", server_default="[]")  # JSON list
    works_in_reverse: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    allow_multiple_triggers: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    execute_once_per_session: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    prevent_quantity_changes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active", server_default="active")  # active|inactive
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

# ----------------------------
# Execution log (analytics only)
# ----------------------------
class RuleExecution(Base):
    __tablename__ = "rule_executions"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    rule_id: Mapped[str] = mapped_column(String(64), nullable=False)
    shop: Mapped[Optional[str]] = mapped_column(String(128), index=True)
    session_id: Mapped[str] = mapped_column(String(128), nullable=False)
    cart_token: Mapped[Optional[str]] = mapped_column(String(128))
    customer_id: Mapped[Optional[str]] = mapped_column(String(64))
    executed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

Index("ix_rule_executions_rule_session", RuleExecution.rule_id, RuleExecution.session_id)


from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# Wire format shared with the storefront engine (camelCase)
class ExecutionInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    rule_id: str = Field(alias="ruleId", min_length=1)
    session_id: str = Field(alias="sessionId", min_length=1)
    cart_id: Optional[str] = Field(default=None, alias="cartId")
    shop: Optional[str] = None
    customer_id: Optional[str] = Field(default=None, alias="customerId")

# cartrules/engine/cart.py
from typing import Optional

import httpx

from ..utils.logging import logger
from .models import CartSnapshot

CART_PATH = "/cart.js"
CART_ADD_PATH = "/cart/add.js"
CART_CHANGE_PATH = "/cart/change.js"


def _wire_id(product_id: str):
    # storefront variant ids are numeric; keep anything else as given
    return int(product_id) if product_id.isdigit() else product_id


def _error_detail(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return (r.text or "")[:200]
    if isinstance(body, dict):
        return str(body.get("description") or body.get("message") or body)
    return str(body)


class CartAccessor:
    """
    Storefront AJAX cart API. Every call may fail; failures are logged and
    reported as None/False so a pass can carry on with the other products.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def read_cart(self) -> Optional[CartSnapshot]:
        try:
            r = await self.client.get(CART_PATH, headers={"Accept": "application/json"})
            r.raise_for_status()
            return CartSnapshot.from_cart_json(r.json())
        except httpx.HTTPError as e:
            logger.error("Failed to get cart: %s", e)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed cart payload: %s", e)
        return None

    async def add_item(self, product_id: str, quantity: int = 1) -> bool:
        payload = {"id": _wire_id(product_id), "quantity": quantity}
        try:
            r = await self.client.post(CART_ADD_PATH, json=payload)
        except httpx.HTTPError as e:
            logger.error("Error adding product %s: %s", product_id, e)
            return False
        if r.is_success:
            logger.info("Added product %s to cart", product_id)
            return True
        logger.warning("Could not add product %s (HTTP %s): %s",
                       product_id, r.status_code, _error_detail(r))
        return False

    async def remove_item(self, product_id: str) -> bool:
        payload = {"id": _wire_id(product_id), "quantity": 0}
        try:
            r = await self.client.post(CART_CHANGE_PATH, json=payload)
        except httpx.HTTPError as e:
            logger.error("Error removing product %s: %s", product_id, e)
            return False
        if r.is_success:
            logger.info("Removed product %s from cart", product_id)
            return True
        logger.warning("Could not remove product %s (HTTP %s): %s",
                       product_id, r.status_code, _error_detail(r))
        return False

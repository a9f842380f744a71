# cartrules/engine/runtime.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx

from ..config import Settings, settings as default_settings
from ..utils.logging import configure_logging, logger
from ..utils.shopify import shop_from_url
from .cart import CartAccessor
from .events import HostEventBus
from .executor import ActionExecutor
from .reconciler import PassResult, Reconciler
from .refresh import RefreshCoordinator
from .rule_source import RuleSource
from .scheduler import ReconciliationScheduler
from .state import EngineState
from .telemetry import TelemetryReporter


class CartRulesEngine:
    """
    One engine per storefront session: owns the EngineState and hands it to
    every component.
    """

    def __init__(self, shop: str, rules_client: httpx.AsyncClient, cart_client: httpx.AsyncClient,
                 bus: Optional[HostEventBus] = None, state: Optional[EngineState] = None,
                 session_id: Optional[str] = None, debounce_seconds: float = 0.5,
                 poll_interval_seconds: float = 30.0, cooldown_seconds: float = 1.0):
        self.shop = shop
        self.rules_client = rules_client
        self.cart_client = cart_client
        self.bus = bus or HostEventBus()
        self.state = state or EngineState()
        if session_id:
            self.state.session_id = session_id

        self.rule_source = RuleSource(rules_client, self.state)
        self.cart = CartAccessor(cart_client)
        self.telemetry = TelemetryReporter(rules_client, shop)
        self.executor = ActionExecutor(self.cart, self.state, self.telemetry)
        self.refresh = RefreshCoordinator(self.cart, self.state, self.bus, cooldown_seconds)
        self.reconciler = Reconciler(shop, self.state, self.rule_source, self.cart,
                                     self.executor, self.refresh)
        self.scheduler = ReconciliationScheduler(self.reconciler, self.state,
                                                 debounce_seconds, poll_interval_seconds)
        self._owns_clients = False

    @classmethod
    def from_settings(cls, cfg: Settings = default_settings,
                      bus: Optional[HostEventBus] = None) -> "CartRulesEngine":
        shop = cfg.SHOP or shop_from_url(cfg.STOREFRONT_URL)
        timeout = httpx.Timeout(cfg.HTTP_TIMEOUT_S)
        rules_client = httpx.AsyncClient(base_url=cfg.APP_BASE_URL, timeout=timeout,
                                         headers={"Content-Type": "application/json"})
        cart_client = httpx.AsyncClient(base_url=cfg.STOREFRONT_URL, timeout=timeout)
        engine = cls(
            shop, rules_client, cart_client, bus=bus,
            session_id=cfg.SESSION_ID,
            debounce_seconds=cfg.DEBOUNCE_MS / 1000,
            poll_interval_seconds=cfg.POLL_INTERVAL_S,
            cooldown_seconds=cfg.SELF_TRIGGER_COOLDOWN_MS / 1000,
        )
        engine._owns_clients = True
        return engine

    async def start(self) -> None:
        logger.info("Initializing cart rules (shop=%s, session=%s)", self.shop, self.state.session_id)
        await self.rule_source.load_rules(self.shop)
        await self.reconciler.run_pass(force=True)
        self.scheduler.attach(self.bus)
        self.scheduler.start()
        logger.info("Cart rules engine ready")

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.telemetry.drain()
        if self._owns_clients:
            await self.rules_client.aclose()
            await self.cart_client.aclose()

    async def check_now(self) -> Optional[PassResult]:
        return await self.reconciler.run_pass(force=True)

    async def reload(self) -> Optional[PassResult]:
        self.rule_source.invalidate()
        await self.rule_source.load_rules(self.shop)
        return await self.check_now()

    def status(self) -> Dict[str, Any]:
        s = self.state
        return {
            "shop": self.shop,
            "session_id": s.session_id,
            "rules_loaded": s.rules_loaded,
            "rules_count": len(s.rule_cache),
            "executed_rules": sorted(f"{rid}_{sid}" for rid, sid in s.fired_rule_keys),
            "added_products": sorted(s.tracked_added_products),
            "is_processing": s.reconciling,
            "cart_update_in_progress": s.is_suppressing(),
            "scheduler": self.scheduler.phase.value,
            "passes": self.reconciler.passes,
        }


async def _run(cfg: Settings) -> None:
    engine = CartRulesEngine.from_settings(cfg)
    await engine.start()
    try:
        await asyncio.Event().wait()
    finally:
        await engine.stop()


def main() -> None:
    configure_logging()
    try:
        asyncio.run(_run(default_settings))
    except KeyboardInterrupt:
        logger.info("Cart rules engine stopped")

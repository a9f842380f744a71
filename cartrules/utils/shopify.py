import re
from urllib.parse import urlparse

MYSHOPIFY_SUFFIX = ".myshopify.com"
MYSHOPIFY_RE = re.compile(r"^[a-z0-9][a-z0-9-]*\.myshopify\.com$", re.I)

def normalize_shop(shop: str) -> str:
    s = (shop or "").strip().lower()
    if not s:
        raise ValueError("Shop parameter required")
    return s

def shop_from_url(url: str) -> str:
    """
    Storefront URL -> shop handle, the way the storefront script derives it:
    https://demo.myshopify.com -> demo
    """
    host = (urlparse(url).hostname or "").lower()
    if not host:
        raise ValueError(f"Cannot derive shop from {url!r}")
    if MYSHOPIFY_RE.match(host):
        return host[: -len(MYSHOPIFY_SUFFIX)]
    return host

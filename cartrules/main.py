from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import settings
from .routes.cart_rules import router as cart_rules_router

app = FastAPI(title="Cart Rules Backend",
              description="Rule source and execution tracking for the storefront engine",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json")

# storefront script calls in from the shop's own origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(cart_rules_router)

@app.get("/health")
def health():
    return {"ok": True}

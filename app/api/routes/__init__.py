from app.api.routes.health import router as health_router
from app.api.routes.roundups import router as roundups_router
from app.api.routes.stats import router as stats_router
from app.api.routes.wallet import router as wallet_router

__all__ = ["health_router", "roundups_router", "stats_router", "wallet_router"]

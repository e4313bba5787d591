from fastapi import APIRouter

from onchain_budget.api.routes import bank, chat, dashboard, onchain


def create_api_router(prefix: str = "/api") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(bank.router)
    router.include_router(onchain.router)
    router.include_router(chat.router)
    router.include_router(dashboard.router)
    return router


__all__ = [
    "create_api_router",
]

"""API route registration."""

from fastapi import APIRouter

from nbchat.api.handlers.chat import router as chat_router
from nbchat.api.handlers.completions import router as completions_router
from nbchat.api.handlers.health import router as health_router
from nbchat.api.handlers.providers import router as providers_router

# Main API router that aggregates all endpoint routers
api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])

api_router.include_router(providers_router, tags=["providers"])

api_router.include_router(chat_router, tags=["chat"])

api_router.include_router(completions_router, tags=["completions"])

from fastapi import APIRouter

from app.api.v1.endpoints import funding_rounds, proposals, users

# Create API router
api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["User"])
api_router.include_router(funding_rounds.router, prefix="/funding-rounds", tags=["Funding Rounds"])
api_router.include_router(proposals.router, prefix="/proposals", tags=["Proposals"])

__all__ = ["api_router"]

"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import harvest_wallet

router = APIRouter()

# Harvest Wallet ledger endpoints
router.include_router(harvest_wallet.router)

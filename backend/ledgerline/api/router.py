"""
Main API router.
"""

from fastapi import APIRouter
from ledgerline.api import imports, recurring, transactions

api_router = APIRouter()

api_router.include_router(imports.router)
api_router.include_router(recurring.router)
api_router.include_router(transactions.router)

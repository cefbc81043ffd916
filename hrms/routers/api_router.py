from fastapi import APIRouter
from hrms.routers import leave, leave_balance, leave_credit, leave_policy, notifications

# Centralized API router hub
# This follows the "Leaf Node" pattern: Routers are aggregated here,
# and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(leave.router)
api_router.include_router(leave_balance.router)
api_router.include_router(leave_credit.router)
api_router.include_router(leave_policy.router)
api_router.include_router(notifications.router)

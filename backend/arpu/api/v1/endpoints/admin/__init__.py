"""
Admin API endpoints. All endpoints require the ADMIN role.
"""
from fastapi import APIRouter

from arpu.api.v1.endpoints.admin import dashboard, users, donations, programs

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(dashboard.router, prefix="/dashboard", tags=["Admin Dashboard"])
admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
admin_router.include_router(donations.router, prefix="/donations", tags=["Admin Donations"])
admin_router.include_router(programs.router, prefix="/programs", tags=["Admin Programs"])

"""
Admin API endpoints for the AlumNet admin panel.
All endpoints require the admin role.
"""
from fastapi import APIRouter

from alumnet.api.v1.endpoints.admin import dashboard, users, logs, broadcast

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

# Include all admin sub-routers
admin_router.include_router(dashboard.router, tags=["Admin Dashboard"])
admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
admin_router.include_router(logs.router, tags=["Admin Logs"])
admin_router.include_router(broadcast.router, tags=["Admin Broadcast"])

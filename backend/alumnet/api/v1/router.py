from fastapi import APIRouter
from alumnet.api.v1.endpoints import (
    auth, students, alumni, faculty, enrollments, notifications, communities, chat, posts,
)
from alumnet.api.v1.endpoints.admin import admin_router

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "alumnet-backend"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(alumni.router, prefix="/alumni", tags=["Alumni"])
api_router.include_router(faculty.router, prefix="/faculty", tags=["Faculty"])
api_router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications & Connections"])
api_router.include_router(communities.router, prefix="/communities", tags=["Communities"])
api_router.include_router(posts.router, prefix="/posts", tags=["Feed"])
api_router.include_router(chat.router, prefix="/chat", tags=["Chat"])

# Admin panel (all routes require the admin role)
api_router.include_router(admin_router)

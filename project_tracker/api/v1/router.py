"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from project_tracker.api.v1.endpoints import admin, auth, students, teachers

api_router = APIRouter()

# Authentication (no token required except /me)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

# Student role
api_router.include_router(
    students.router,
    prefix="/student",
    tags=["Students"],
)

# Teacher role
api_router.include_router(
    teachers.router,
    prefix="/teacher",
    tags=["Teachers"],
)

# Administrator role
api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"],
)

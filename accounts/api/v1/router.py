"""API v1 router aggregation.

Auth routes share the /users prefix with the user resource; they are
included first so their static paths win over /users/{user_id}.
"""

from fastapi import APIRouter

from accounts.api.v1.endpoints import auth, health, users

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/users", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])

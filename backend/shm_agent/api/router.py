from fastapi import APIRouter
from shm_agent.api.routes import users

api_router = APIRouter()
api_router.include_router(users.router, tags=["users"])

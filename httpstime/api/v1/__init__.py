from fastapi import APIRouter

from httpstime.api.v1 import time

api_router = APIRouter()

api_router.include_router(time.router)

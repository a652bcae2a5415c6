# backend/app/api/v1/router.py
from fastapi import APIRouter
from backend.app.api.v1.endpoints import admin, store, totp, upload

api_router = APIRouter()
api_router.include_router(totp.router, tags=["auth"])
api_router.include_router(admin.router, tags=["admin"])
api_router.include_router(upload.router, tags=["media"])
api_router.include_router(store.router, prefix="/store", tags=["store"])

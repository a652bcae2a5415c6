# backend/app/api/v1/endpoints/admin.py
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api import deps
from backend.app.db.base import get_db
from backend.app.schemas.admin import AdminOperationRequest
from backend.app.security.sessions import SessionManager
from backend.app.services.admin_operations import AdminOperations

router = APIRouter()


@router.post("/admin-operations")
async def admin_operations(
        request_in: AdminOperationRequest,
        db: AsyncSession = Depends(get_db),
        sessions: SessionManager = Depends(deps.get_session_manager),
) -> Dict[str, Any]:
    # Session first: nothing in `data` is looked at before this passes
    await deps.authorize_session(sessions, request_in.session_token)
    return await AdminOperations(db).run(request_in.action, request_in.data)

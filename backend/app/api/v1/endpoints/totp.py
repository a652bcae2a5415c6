# backend/app/api/v1/endpoints/totp.py
from typing import Any, Dict

from fastapi import APIRouter, Depends

from backend.app.api import deps
from backend.app.schemas.totp import TotpRequest
from backend.app.services.verification import VerificationService

router = APIRouter()


@router.post("/totp-verify")
async def totp_verify(
        request_in: TotpRequest,
        identity: str = Depends(deps.get_client_identity),
        service: VerificationService = Depends(deps.get_verification_service),
) -> Dict[str, Any]:
    """
    Second-factor protocol, dispatched on `action`:
    check | generate | setup | verify | validate_session
    """
    result = await service.dispatch(request_in, identity)
    return result.model_dump(by_alias=True, exclude_none=True)

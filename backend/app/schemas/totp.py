# backend/app/schemas/totp.py
"""
Request / response models for the TOTP verification endpoint.

Field names on the wire follow the admin panel (camelCase); every
request field is optional so that a missing field is reported as a
declined operation (MissingInput) rather than a schema error.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TotpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Optional[str] = None
    code: Optional[str] = None
    secret: Optional[str] = None
    session_token: Optional[str] = Field(default=None, alias="sessionToken")


class CheckResponse(BaseModel):
    configured: bool


class GenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    secret: str
    otpauth_uri: str = Field(alias="otpauthUri")
    # Base64 PNG of the otpauth URI
    qr_code: str = Field(alias="qrCode")


class SetupResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    session_token: str = Field(alias="sessionToken")


class VerifyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    session_token: Optional[str] = Field(default=None, alias="sessionToken")


class SessionStatusResponse(BaseModel):
    valid: bool

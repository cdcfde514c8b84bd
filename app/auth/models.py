"""JWT Payload Models"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class JWTPayload(BaseModel):
    """Authenticated back-office user extracted from the bearer token"""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[str] = None
    roles: list[str] = []
    permissions: list[str] = []
    iat: Optional[datetime] = None
    exp: Optional[datetime] = None

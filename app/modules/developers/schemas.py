from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class DeveloperIdentity(BaseModel):
    developer_id: str
    api_key_id: str
    tier: str
    status: str
    rate_limit_per_minute: int
    scopes: List[str] = []


class ValidateRequest(BaseModel):
    scope: Optional[str] = None


class ValidateResponse(BaseModel):
    success: bool = True
    developer: DeveloperIdentity


class UsageRequest(BaseModel):
    """A call the developer made, reported for billing"""
    endpoint: str = "/unknown"
    method: str = "GET"
    response_status: int = Field(default=200, ge=100, le=599)
    latency_ms: Optional[int] = Field(default=None, ge=0)
    billed_units: int = Field(default=1, ge=1)


class ApiKeyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    scopes: List[str] = []


class ApiKeyResponse(BaseModel):
    id: str
    name: str
    key_prefix: str
    scopes: List[str] = []
    is_active: bool = True
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApiKeyCreated(ApiKeyResponse):
    api_key: str

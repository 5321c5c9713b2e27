from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class FeatureFlagCreate(BaseModel):
    flag_key: str = Field(min_length=1, max_length=100)
    flag_name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    is_enabled: bool = False
    rollout_percentage: int = Field(default=100, ge=0, le=100)
    target_user_types: List[str] = []


class FeatureFlagUpdate(BaseModel):
    flag_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_enabled: Optional[bool] = None
    rollout_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    target_user_types: Optional[List[str]] = None


class FeatureFlagResponse(BaseModel):
    id: str
    flag_key: str
    flag_name: str
    description: Optional[str] = None
    is_enabled: bool = False
    rollout_percentage: int = 100
    target_user_types: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

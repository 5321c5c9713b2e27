from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime


class BusinessCreate(BaseModel):
    business_name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class BusinessUpdate(BaseModel):
    business_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    banner_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class BusinessSuspendRequest(BaseModel):
    suspended: bool = True
    reason: Optional[str] = None


class BusinessResponse(BaseModel):
    id: str
    owner_id: str
    business_name: str
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    banner_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_verified: bool = False
    is_suspended: bool = False
    suspension_reason: Optional[str] = None
    average_rating: Optional[float] = 0
    review_count: Optional[int] = 0
    subscription_status: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("is_verified", "is_suspended", mode="before")
    @classmethod
    def unset_flag_is_false(cls, value):
        return bool(value)

    class Config:
        from_attributes = True

from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal
from datetime import datetime


class QRCodeCreate(BaseModel):
    business_id: str
    code_type: Literal["loyalty", "discount", "checkin", "info"]
    points_value: Optional[int] = Field(default=None, ge=0)
    discount_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    expiration_date: Optional[datetime] = None
    scan_limit: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True

    @model_validator(mode="after")
    def require_value_for_type(self):
        if self.code_type == "loyalty" and not self.points_value:
            raise ValueError("Loyalty QR codes need a points_value")
        if self.code_type == "discount" and not self.discount_percentage:
            raise ValueError("Discount QR codes need a discount_percentage")
        return self


class QRCodeUpdate(BaseModel):
    points_value: Optional[int] = Field(default=None, ge=0)
    discount_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    expiration_date: Optional[datetime] = None
    scan_limit: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class QRCodeResponse(BaseModel):
    id: str
    business_id: str
    code_type: str
    points_value: Optional[int] = None
    discount_percentage: Optional[int] = None
    is_active: bool = True
    expiration_date: Optional[datetime] = None
    scan_limit: Optional[int] = None
    current_scans: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QRScanRequest(BaseModel):
    order_total: Optional[float] = Field(default=None, ge=0)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class QRScanResult(BaseModel):
    scan_id: str
    qr_code_id: str
    business_id: str
    business_name: str
    code_type: str
    gross_points: int = 0
    platform_commission: int = 0
    points_awarded: int = 0
    discount_amount: float = 0
    streak_days: int = 1
    total_points: int = 0
    tier: str
    tier_upgraded: bool = False
    new_tier: Optional[str] = None
    message: str

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class FraudAnalyzeRequest(BaseModel):
    days: int = Field(default=7, ge=1, le=90)
    business_id: Optional[str] = None


class FraudAlertResponse(BaseModel):
    id: Optional[str] = None
    alert_type: str
    severity: str
    user_id: Optional[str] = None
    business_id: Optional[str] = None
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None
    description: str
    evidence: Dict[str, Any] = {}
    ai_confidence_score: Optional[float] = None
    status: str = "pending"
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FraudAnalysisResult(BaseModel):
    records_analyzed: int
    alerts_generated: int
    duration_ms: int
    alerts: List[FraudAlertResponse] = []

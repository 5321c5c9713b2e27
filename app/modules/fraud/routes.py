from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.fraud.schemas import FraudAnalyzeRequest, FraudAnalysisResult, FraudAlertResponse
from app.modules.fraud.service import FraudService
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/fraud", tags=["fraud"])


def get_fraud_service(supabase: Client = Depends(get_service_supabase)) -> FraudService:
    return FraudService(supabase)


@router.post("/analyze", response_model=FraudAnalysisResult)
async def analyze_scans(
    request: FraudAnalyzeRequest,
    user_data: Dict = Depends(require_permission("fraud:analyze")),
    service: FraudService = Depends(get_fraud_service)
):
    """Run the travel and velocity detectors over recent QR scans"""
    return service.analyze(days=request.days, business_id=request.business_id, triggered_by=user_data["id"])


@router.get("/alerts", response_model=List[FraudAlertResponse])
async def list_alerts(
    status: Optional[str] = None,
    limit: int = 50,
    user_data: Dict = Depends(require_permission("fraud:read")),
    service: FraudService = Depends(get_fraud_service)
):
    return service.list_alerts(status=status, limit=limit)

from fastapi import APIRouter, Depends, Response
from app.database.supabase_client import get_supabase
from app.modules.qr_codes.schemas import QRCodeCreate, QRCodeUpdate, QRCodeResponse, QRScanRequest, QRScanResult
from app.modules.qr_codes.service import QRCodeService
from app.modules.qr_codes.qr_image import generate_qr_png
from app.core.dependencies import get_current_user, check_business_owner
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/qr-codes", tags=["qr_codes"])
business_router = APIRouter(prefix="/businesses", tags=["qr_codes"])


def get_qr_service(supabase: Client = Depends(get_supabase)) -> QRCodeService:
    return QRCodeService(supabase)


@router.post("", response_model=QRCodeResponse, status_code=201)
async def create_qr_code(
    qr_data: QRCodeCreate,
    user_data: Dict = Depends(get_current_user),
    service: QRCodeService = Depends(get_qr_service),
    supabase: Client = Depends(get_supabase)
):
    """Create a QR code for a business the caller owns"""
    check_business_owner(qr_data.business_id, user_data, supabase)
    return service.create_qr_code(qr_data)


@router.get("/{qr_code_id}", response_model=QRCodeResponse)
async def get_qr_code(
    qr_code_id: str,
    user_data: Dict = Depends(get_current_user),
    service: QRCodeService = Depends(get_qr_service)
):
    return service.get_qr_code(qr_code_id)


@router.put("/{qr_code_id}", response_model=QRCodeResponse)
async def update_qr_code(
    qr_code_id: str,
    qr_data: QRCodeUpdate,
    user_data: Dict = Depends(get_current_user),
    service: QRCodeService = Depends(get_qr_service),
    supabase: Client = Depends(get_supabase)
):
    qr = service.get_qr_row(qr_code_id)
    check_business_owner(qr["business_id"], user_data, supabase)
    return service.update_qr_code(qr_code_id, qr_data)


@router.delete("/{qr_code_id}", status_code=204)
async def delete_qr_code(
    qr_code_id: str,
    user_data: Dict = Depends(get_current_user),
    service: QRCodeService = Depends(get_qr_service),
    supabase: Client = Depends(get_supabase)
):
    qr = service.get_qr_row(qr_code_id)
    check_business_owner(qr["business_id"], user_data, supabase)
    service.delete_qr_code(qr_code_id)
    return None


@router.get("/{qr_code_id}/image")
async def get_qr_image(
    qr_code_id: str,
    user_data: Dict = Depends(get_current_user),
    service: QRCodeService = Depends(get_qr_service),
    supabase: Client = Depends(get_supabase)
):
    """PNG of the scan deep link, for printing at the counter"""
    qr = service.get_qr_row(qr_code_id)
    check_business_owner(qr["business_id"], user_data, supabase)
    return Response(content=generate_qr_png(qr_code_id), media_type="image/png")


@router.post("/{qr_code_id}/scan", response_model=QRScanResult)
async def scan_qr_code(
    qr_code_id: str,
    scan: QRScanRequest,
    user_data: Dict = Depends(get_current_user),
    service: QRCodeService = Depends(get_qr_service)
):
    return service.process_scan(qr_code_id, user_data["id"], scan)


@business_router.get("/{business_id}/qr-codes", response_model=List[QRCodeResponse])
async def list_business_qr_codes(
    business_id: str,
    user_data: Dict = Depends(get_current_user),
    service: QRCodeService = Depends(get_qr_service),
    supabase: Client = Depends(get_supabase)
):
    check_business_owner(business_id, user_data, supabase)
    return service.list_by_business(business_id)

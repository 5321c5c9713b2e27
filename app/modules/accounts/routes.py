from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPAuthorizationCredentials
from app.database.supabase_client import get_service_supabase
from app.modules.accounts.schemas import AccountDeletionResult
from app.modules.accounts.service import AccountService
from app.modules.auth.service import forget_token
from app.core.dependencies import get_current_user, security
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/accounts", tags=["accounts"])


def get_account_service(supabase: Client = Depends(get_service_supabase)) -> AccountService:
    return AccountService(supabase)


@router.delete("/me", response_model=AccountDeletionResult)
async def delete_my_account(
    credentials: HTTPAuthorizationCredentials = Security(security),
    user_data: Dict = Depends(get_current_user),
    service: AccountService = Depends(get_account_service)
):
    """Permanently delete the caller's account and data"""
    result = service.delete_account(user_data["id"])
    forget_token(credentials.credentials)
    return result

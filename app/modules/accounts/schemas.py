from pydantic import BaseModel
from typing import Optional, List


class TableDeletion(BaseModel):
    table: str
    success: bool
    rows_deleted: int = 0
    error: Optional[str] = None


class AccountDeletionResult(BaseModel):
    user_id: str
    auth_user_deleted: bool
    steps: List[TableDeletion] = []
    message: str

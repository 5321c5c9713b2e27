from supabase import Client
from app.modules.accounts.schemas import AccountDeletionResult, TableDeletion
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

# (table, owner column) in deletion order; profiles goes last before the auth user
DELETION_CASCADE = (
    ("loyalty_points", "customer_id"),
    ("transactions", "customer_id"),
    ("qr_scans", "customer_id"),
    ("karma_transactions", "user_id"),
    ("user_roles", "user_id"),
    ("sales_agents", "user_id"),
    ("subscriptions", "user_id"),
    ("profiles", "id"),
)


class AccountService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def delete_account(self, user_id: str) -> AccountDeletionResult:
        """
        Remove a user's data table by table, then the auth user.

        There is no transaction across tables: a failed step is logged and the
        cascade moves on, so the outcome of every step is returned.
        """
        steps = []
        for table, column in DELETION_CASCADE:
            try:
                result = self.supabase.table(table).delete().eq(column, user_id).execute()
                deleted = len(result.data or [])
                steps.append(TableDeletion(table=table, success=True, rows_deleted=deleted))
                logger.info(f"Account {user_id}: deleted {deleted} row(s) from {table}")
            except Exception as e:
                logger.error(f"Account {user_id}: failed to delete from {table}: {e}")
                steps.append(TableDeletion(table=table, success=False, error=str(e)))

        try:
            self.supabase.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"Account {user_id}: failed to delete auth user: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to delete user account: {e}")

        failed = [s.table for s in steps if not s.success]
        logger.info(f"Account {user_id} deleted ({len(failed)} table step(s) failed)")
        return AccountDeletionResult(
            user_id=user_id,
            auth_user_deleted=True,
            steps=steps,
            message="Account deleted" if not failed else f"Account deleted; cleanup failed for {', '.join(failed)}",
        )

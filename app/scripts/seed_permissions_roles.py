"""
Seed permissions and roles from app.config.permissions_config.

Run with `python -m app.scripts.seed_permissions_roles`. Safe to re-run: rows are matched
by name, and role_permissions is synced to the config in both directions.

Optionally grant a role to a user:
    python -m app.scripts.seed_permissions_roles <user_id> <role_name>
"""

import sys
import logging
from typing import Dict, List

from app.config.permissions_config import PERMISSION_MATRIX
from app.database.supabase_client import get_service_supabase
from supabase import Client

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def seed_permissions(supabase: Client) -> Dict[str, str]:
    """Upsert every permission and return a name -> id map"""
    logger.info("Seeding permissions...")
    rows = [
        {
            "name": perm["name"],
            "resource": perm["resource"],
            "action": perm["action"],
            "description": perm["description"],
        }
        for perm in PERMISSION_MATRIX["permissions"]
    ]
    supabase.table("permissions").upsert(rows, on_conflict="name").execute()
    result = supabase.table("permissions")\
        .select("id, name")\
        .in_("name", [r["name"] for r in rows])\
        .execute()
    ids = {p["name"]: p["id"] for p in result.data or []}
    logger.info(f"Permissions seeded: {len(ids)} of {len(rows)}")
    return ids


def seed_roles(supabase: Client, permission_ids: Dict[str, str]) -> int:
    logger.info("Seeding roles...")
    count = 0
    for role in PERMISSION_MATRIX["roles"]:
        try:
            result = supabase.table("roles")\
                .upsert({"name": role["name"], "description": role["description"]}, on_conflict="name")\
                .execute()
            role_id = result.data[0]["id"]
            wanted = [permission_ids[name] for name in role["permissions"] if name in permission_ids]
            sync_role_permissions(supabase, role_id, role["name"], wanted)
            count += 1
        except Exception as e:
            logger.error(f"Error processing role {role['name']}: {e}")
    logger.info(f"Roles seeded: {count}")
    return count


def sync_role_permissions(supabase: Client, role_id: str, role_name: str, permission_ids: List[str]):
    """Make role_permissions for one role match the config exactly"""
    existing_result = supabase.table("role_permissions")\
        .select("permission_id")\
        .eq("role_id", role_id)\
        .execute()
    existing = {p["permission_id"] for p in existing_result.data or []}
    wanted = set(permission_ids)

    to_add = [{"role_id": role_id, "permission_id": pid} for pid in wanted - existing]
    if to_add:
        supabase.table("role_permissions").insert(to_add).execute()
        logger.debug(f"Assigned {len(to_add)} permissions to role {role_name}")

    to_remove = existing - wanted
    if to_remove:
        supabase.table("role_permissions")\
            .delete()\
            .eq("role_id", role_id)\
            .in_("permission_id", list(to_remove))\
            .execute()
        logger.debug(f"Removed {len(to_remove)} permissions from role {role_name}")


def grant_role(supabase: Client, user_id: str, role_name: str) -> bool:
    role = supabase.table("roles")\
        .select("id")\
        .eq("name", role_name)\
        .maybe_single()\
        .execute()
    if not role or not role.data:
        logger.error(f"Unknown role {role_name}")
        return False
    existing = supabase.table("user_roles")\
        .select("role_id")\
        .eq("user_id", user_id)\
        .eq("role_id", role.data["id"])\
        .execute()
    if not existing.data:
        supabase.table("user_roles").insert({"user_id": user_id, "role_id": role.data["id"]}).execute()
    logger.info(f"Granted {role_name} to {user_id}")
    return True


def main(argv: List[str]) -> int:
    try:
        supabase = get_service_supabase()
        permission_ids = seed_permissions(supabase)
        role_count = seed_roles(supabase, permission_ids)
        logger.info(f"Seeding completed: {len(permission_ids)} permissions, {role_count} roles")
        if len(argv) == 2:
            return 0 if grant_role(supabase, argv[0], argv[1]) else 1
        return 0
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

"""
Tests for the permission seeding script and the karma decay background pass
"""
from app.config.permissions_config import PERMISSION_MATRIX
from app.modules.loyalty import decay_scheduler
from app.scripts import seed_permissions_roles as seed
from tests.conftest import CUSTOMER_ID


class TestSeedPermissions:

    def test_seed_is_idempotent(self, fake_db):
        for _ in range(2):
            ids = seed.seed_permissions(fake_db)
            seed.seed_roles(fake_db, ids)

        assert len(fake_db.rows("permissions")) == len(PERMISSION_MATRIX["permissions"])
        assert len(fake_db.rows("roles")) == len(PERMISSION_MATRIX["roles"])
        expected_links = sum(len(r["permissions"]) for r in PERMISSION_MATRIX["roles"])
        assert len(fake_db.rows("role_permissions")) == expected_links

    def test_stale_role_permissions_are_removed(self, fake_db):
        ids = seed.seed_permissions(fake_db)
        seed.seed_roles(fake_db, ids)
        role = next(r for r in fake_db.rows("roles") if r["name"] == "fraud_viewer")
        fake_db.seed("role_permissions", {"role_id": role["id"], "permission_id": ids["fraud:analyze"]})

        seed.seed_roles(fake_db, ids)

        linked = {rp["permission_id"] for rp in fake_db.rows("role_permissions") if rp["role_id"] == role["id"]}
        assert linked == {ids["fraud:read"]}

    def test_grant_role(self, fake_db):
        ids = seed.seed_permissions(fake_db)
        seed.seed_roles(fake_db, ids)

        assert seed.grant_role(fake_db, CUSTOMER_ID, "susu_admin")
        assert seed.grant_role(fake_db, CUSTOMER_ID, "susu_admin")
        assert len(fake_db.rows("user_roles")) == 1
        assert not seed.grant_role(fake_db, CUSTOMER_ID, "no_such_role")

    def test_main_reports_failure(self, monkeypatch):
        def no_client():
            raise RuntimeError("SUPABASE_URL is not set")

        monkeypatch.setattr(seed, "get_service_supabase", no_client)
        assert seed.main([]) == 1


class TestDecayPass:

    async def test_run_decay_pass_uses_service_client(self, fake_db, monkeypatch):
        fake_db.seed("profiles", {"id": CUSTOMER_ID, "economic_karma": 100.0})
        monkeypatch.setattr(decay_scheduler, "get_service_supabase", lambda: fake_db)

        await decay_scheduler.run_decay_pass()

        assert fake_db.rows("profiles")[0]["economic_karma"] == 95.0

    async def test_run_decay_pass_swallows_errors(self, fake_db, monkeypatch):
        fake_db.fail_tables.add("profiles")
        monkeypatch.setattr(decay_scheduler, "get_service_supabase", lambda: fake_db)

        await decay_scheduler.run_decay_pass()

"""
Health endpoint, CORS headers and CLI command tests.
"""

from safetyhub.models import Permission, RefreshToken, Role, User


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["checked_at"].endswith("Z")


def test_unknown_route_is_json_404(client):
    resp = client.get("/v1/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "not_found"


def test_cors_allowed_origin(client):
    resp = client.get("/v1/brands", headers={"Origin": "http://localhost:3000"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert resp.headers["Access-Control-Allow-Credentials"] == "true"


def test_cors_unknown_origin(client):
    resp = client.get("/v1/brands", headers={"Origin": "https://evil.example.com"})
    assert "Access-Control-Allow-Origin" not in resp.headers


class TestCli:
    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0
        assert "Permissions created: 0" in result.output

        assert db_session.query(Role).count() == 3
        assert db_session.query(Permission).count() == 4

    def test_create_user_and_set_role(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create",
            "--email", "Admin@Example.com",
            "--password", "longenoughpassword1",
            "--role", "admin",
        ])
        assert result.exit_code == 0, result.output
        assert db_session.query(User).filter_by(email="admin@example.com").count() == 1

        result = runner.invoke(args=["users", "set-role", "admin@example.com", "seller"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(args=["users", "list"])
        assert "admin@example.com" in result.output
        assert "seller" in result.output

    def test_create_user_with_weak_password(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--email", "x@example.com", "--password", "short", "--role", "seller",
        ])
        assert result.exit_code != 0
        assert "Failed to create user" in result.output

    def test_set_role_unknown_user(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["users", "set-role", "nobody@example.com", "admin"])
        assert result.exit_code != 0

    def test_perms_list_for_role(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["perms", "list", "--role", "seller"])
        assert result.exit_code == 0
        assert "catalog:create" in result.output
        assert "users:manage" not in result.output

    def test_sessions_revoke_all(self, app, client, make_user, db_session):
        make_user("cli@example.com")
        result = app.test_cli_runner().invoke(args=["sessions", "revoke-all", "cli@example.com"])
        assert result.exit_code == 0
        assert "Revoked 1 sessions" in result.output
        assert db_session.query(RefreshToken).filter_by(revoked=False).count() == 0

    def test_sessions_cleanup(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["sessions", "cleanup", "--older-than-days", "30"])
        assert result.exit_code == 0
        assert "Deleted 0 refresh tokens" in result.output

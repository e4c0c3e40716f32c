"""
Tests for authentication, user, institution and membership routes.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from api.services.users import IssuedToken
from core.authorization.decisions import DenyReason
from core.authorization.roles import Caller, Role
from core.errors import Forbidden, NoActiveTenant, Unauthenticated
from core.security import create_access_token
from database.models.institutions import InstitutionKind

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)
STUDENT = Caller.build(5, [(1, Role.STUDENT)], active_institution_id=1)
SUPERADMIN = Caller.build(1, [(99, Role.SUPERADMIN)])


def user_row(**overrides):
    fields = dict(
        id=5,
        email="ana@uf.br",
        first_name="Ana",
        last_name="Souza",
        active_institution_id=1,
        created_at=NOW,
        last_login_at=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def institution_row(**overrides):
    fields = dict(
        id=1,
        name="UF",
        kind=InstitutionKind.UNIVERSITY,
        is_active=True,
        primary_color=None,
        logo_url=None,
        created_at=NOW,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestAuthRoutes:
    """Registration and login."""

    def test_register(self, api):
        issued = IssuedToken(access_token="tok", expires_in=3600, user=user_row())
        with patch("api.services.users.register", AsyncMock(return_value=issued)) as register:
            response = api.client.post(
                "/api/v1/auth/register",
                json={
                    "email": "ana@uf.br",
                    "password": "senha1234",
                    "first_name": "Ana",
                    "institution_id": 1,
                },
            )

        assert response.status_code == 201
        body = response.json()
        assert body["access_token"] == "tok"
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "ana@uf.br"
        assert register.await_args.kwargs["institution_id"] == 1

    def test_register_rejects_weak_password(self, api):
        response = api.client.post(
            "/api/v1/auth/register",
            json={
                "email": "ana@uf.br",
                "password": "somenteletras",
                "first_name": "Ana",
                "institution_id": 1,
            },
        )
        assert response.status_code == 422

    def test_login_failure(self, api):
        with patch(
            "api.services.users.login",
            AsyncMock(side_effect=Unauthenticated("Invalid email or password")),
        ):
            response = api.client.post(
                "/api/v1/auth/login", json={"email": "ana@uf.br", "password": "x"}
            )

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error"]["message"] == "Invalid email or password"


class TestTokenHandling:
    def test_expired_token_is_rejected_before_routing(self, api):
        token = create_access_token(5, "ana@uf.br", expires_delta=timedelta(seconds=-5))
        response = api.client.get(
            "/api/v1/jobs/public", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Authentication token has expired"

    def test_preflight_answered_before_authentication(self, api):
        token = create_access_token(5, "ana@uf.br", expires_delta=timedelta(seconds=-5))
        response = api.client.options(
            "/api/v1/jobs",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
                "Authorization": f"Bearer {token}",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_auth_rejection_carries_cors_headers(self, api):
        token = create_access_token(5, "ana@uf.br", expires_delta=timedelta(seconds=-5))
        response = api.client.get(
            "/api/v1/jobs",
            headers={"Origin": "http://localhost:3000", "Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 401
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_health_is_public(self, api):
        response = api.client.get("/health", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestUserRoutes:
    def test_profile_lists_memberships(self, api):
        api.act_as(STUDENT)
        membership = SimpleNamespace(id=8, role=Role.STUDENT)
        profile = (user_row(), [(membership, institution_row())])
        with patch("api.services.users.get_profile", AsyncMock(return_value=profile)):
            response = api.client.get("/api/v1/users/me")

        assert response.status_code == 200
        assert response.json()["memberships"] == [
            {"id": 8, "institution_id": 1, "institution_name": "UF", "role": "student"}
        ]

    def test_switch_to_foreign_institution_is_forbidden(self, api):
        api.act_as(STUDENT)
        error = Forbidden("Not a member of that institution", reason=DenyReason.NOT_MEMBER)
        with patch("api.services.users.switch_active_institution", AsyncMock(side_effect=error)):
            response = api.client.post(
                "/api/v1/users/me/active-institution", json={"institution_id": 2}
            )

        assert response.status_code == 403
        assert response.json()["error"]["reason"] == "not_member"

    def test_switch_returns_fresh_token(self, api):
        api.act_as(STUDENT)
        issued = IssuedToken(
            access_token="fresh", expires_in=3600, user=user_row(active_institution_id=2)
        )
        with patch(
            "api.services.users.switch_active_institution", AsyncMock(return_value=issued)
        ) as switch:
            response = api.client.post(
                "/api/v1/users/me/active-institution", json={"institution_id": 2}
            )

        assert response.status_code == 200
        assert response.json()["user"]["active_institution_id"] == 2
        assert switch.await_args.args[2] == 2

    def test_profile_update_sends_only_present_fields(self, api):
        api.act_as(STUDENT)
        updated = user_row(course="Engenharia", graduation_year=2027)
        with patch(
            "api.services.users.update_profile", AsyncMock(return_value=updated)
        ) as update:
            response = api.client.patch(
                "/api/v1/users/me", json={"course": "Engenharia", "graduation_year": 2027}
            )

        assert response.status_code == 200
        assert response.json()["course"] == "Engenharia"
        assert update.await_args.args[1:] == (
            STUDENT, {"course": "Engenharia", "graduation_year": 2027}
        )

    def test_profile_update_rejects_bad_values(self, api):
        api.act_as(STUDENT)
        response = api.client.patch(
            "/api/v1/users/me",
            json={"first_name": None, "github_url": "github.com/ana"},
        )

        assert response.status_code == 422
        fields = {detail["field"] for detail in response.json()["error"]["details"]}
        assert {"body.first_name", "body.github_url"} <= fields

    def test_change_password(self, api, gateway):
        api.act_as(STUDENT)
        with patch("api.services.users.change_password", AsyncMock()) as change:
            response = api.client.post(
                "/api/v1/users/me/password",
                json={"old_password": "senha1234", "new_password": "novasenha99"},
            )

        assert response.status_code == 200
        assert response.json() == {"message": "Password changed"}
        assert change.await_args.args[1:] == (STUDENT, "senha1234", "novasenha99", gateway)

    def test_change_password_wrong_current(self, api):
        api.act_as(STUDENT)
        with patch(
            "api.services.users.change_password",
            AsyncMock(side_effect=Unauthenticated("Current password is incorrect")),
        ):
            response = api.client.post(
                "/api/v1/users/me/password",
                json={"old_password": "errada123", "new_password": "novasenha99"},
            )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Current password is incorrect"

    def test_change_password_rejects_weak_password(self, api):
        api.act_as(STUDENT)
        response = api.client.post(
            "/api/v1/users/me/password",
            json={"old_password": "senha1234", "new_password": "12345678"},
        )
        assert response.status_code == 422

    def test_delete_user(self, api):
        api.act_as(SUPERADMIN)
        with patch("api.services.users.delete_user", AsyncMock()) as delete:
            response = api.client.delete("/api/v1/users/5")

        assert response.status_code == 204
        assert delete.await_args.args[1:] == (SUPERADMIN, 5)


class TestInstitutionRoutes:
    def test_public_listing(self, api):
        rows = ([institution_row()], 1)
        with patch(
            "api.services.institutions.list_public_institutions", AsyncMock(return_value=rows)
        ):
            response = api.client.get("/api/v1/institutions/public")

        assert response.status_code == 200
        assert response.json()["data"][0]["kind"] == "university"

    def test_create_validates_name(self, api):
        api.act_as(SUPERADMIN)
        response = api.client.post("/api/v1/institutions", json={"name": "X"})
        assert response.status_code == 422

    def test_deactivate(self, api):
        api.act_as(SUPERADMIN)
        with patch(
            "api.services.institutions.set_institution_active",
            AsyncMock(return_value=institution_row(is_active=False)),
        ) as toggle:
            response = api.client.post("/api/v1/institutions/1/deactivate")

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert toggle.await_args.args[2:] == (1, False)

    def test_admin_update_without_active_tenant(self, api):
        api.act_as(Caller.build(3, [(1, Role.ADMIN)]))
        with patch(
            "api.services.institutions.update_institution",
            AsyncMock(side_effect=NoActiveTenant()),
        ):
            response = api.client.patch("/api/v1/institutions/1", json={"name": "UF Nova"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "NO_ACTIVE_TENANT"


class TestMembershipRoutes:
    def test_assign_role(self, api):
        api.act_as(SUPERADMIN)
        record = SimpleNamespace(id=3, user_id=5, institution_id=1, role=Role.PROFESSOR)
        with patch(
            "api.services.memberships.assign_role", AsyncMock(return_value=record)
        ) as assign:
            response = api.client.put(
                "/api/v1/memberships",
                json={"user_id": 5, "institution_id": 1, "role": "professor"},
            )

        assert response.status_code == 200
        assert response.json()["role"] == "professor"
        assert assign.await_args.args[2:] == (5, 1, Role.PROFESSOR)

    def test_unknown_role_is_rejected(self, api):
        api.act_as(SUPERADMIN)
        response = api.client.put(
            "/api/v1/memberships",
            json={"user_id": 5, "institution_id": 1, "role": "dean"},
        )
        assert response.status_code == 422

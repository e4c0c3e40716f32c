"""
End-to-end flows through the HTTP API against an in-memory SQLite database.

Tokens are issued by the real login endpoint; only the database session
and the notification gateway are swapped out.
"""

from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from api.main import app
from api.services.notifications import get_notification_gateway
from core.authorization.lifecycle import JobStatus, TriggerKind
from core.authorization.roles import Role
from database.engine import get_db
from database.models import InstitutionKind

PREFIX = "/api/v1"


@pytest_asyncio.fixture
async def client(session_factory, gateway):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_gateway] = lambda: gateway
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def world(seed):
    """Two universities, one company and a user per role."""
    uf = await seed.institution("UF")
    puc = await seed.institution("PUC")
    techco = await seed.institution("TechCo", kind=InstitutionKind.COMPANY)

    root = await seed.user("root@vagas.br")
    await seed.member(root, uf, Role.SUPERADMIN)
    admin = await seed.user("admin@uf.br", active_institution_id=uf.id)
    await seed.member(admin, uf, Role.ADMIN)
    professor = await seed.user("prof@uf.br", active_institution_id=uf.id)
    professor_membership = await seed.member(professor, uf, Role.PROFESSOR)
    student = await seed.user("aluno@uf.br", active_institution_id=uf.id)
    await seed.member(student, uf, Role.STUDENT)
    empresa = await seed.user("rh@techco.com", active_institution_id=techco.id)
    await seed.member(empresa, techco, Role.EMPRESA)
    await seed.commit()

    return SimpleNamespace(
        uf=uf,
        puc=puc,
        techco=techco,
        root=root,
        admin=admin,
        professor=professor,
        professor_membership=professor_membership,
        student=student,
        empresa=empresa,
    )


async def login(client, email, password="senha1234"):
    response = await client.post(
        f"{PREFIX}/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.mark.asyncio
class TestAccounts:
    """Registration, login and tenant switching."""

    async def test_register_joins_university_as_student(self, client, world):
        response = await client.post(
            f"{PREFIX}/auth/register",
            json={
                "email": "Nova@UF.br",
                "password": "senha1234",
                "first_name": "Nova",
                "institution_id": world.uf.id,
            },
        )
        assert response.status_code == 201
        assert response.json()["user"]["active_institution_id"] == world.uf.id

        headers = await login(client, "nova@uf.br")
        me = await client.get(f"{PREFIX}/users/me", headers=headers)
        assert me.status_code == 200
        assert [(m["institution_name"], m["role"]) for m in me.json()["memberships"]] == [
            ("UF", "student")
        ]

    async def test_duplicate_email_conflicts(self, client, world):
        response = await client.post(
            f"{PREFIX}/auth/register",
            json={
                "email": "ALUNO@uf.br",
                "password": "senha1234",
                "first_name": "Outro",
                "institution_id": world.uf.id,
            },
        )
        assert response.status_code == 409

    async def test_wrong_password(self, client, world):
        response = await client.post(
            f"{PREFIX}/auth/login", json={"email": "aluno@uf.br", "password": "errada123"}
        )
        assert response.status_code == 401

    async def test_switch_to_foreign_institution_is_forbidden(self, client, world):
        headers = await login(client, "aluno@uf.br")
        response = await client.post(
            f"{PREFIX}/users/me/active-institution",
            json={"institution_id": world.puc.id},
            headers=headers,
        )
        assert response.status_code == 403

    async def test_superadmin_switches_anywhere(self, client, world):
        headers = await login(client, "root@vagas.br")
        response = await client.post(
            f"{PREFIX}/users/me/active-institution",
            json={"institution_id": world.puc.id},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["user"]["active_institution_id"] == world.puc.id


@pytest.mark.asyncio
class TestJobScenarios:
    async def test_company_job_starts_public_draft(self, client, world, gateway):
        headers = await login(client, "rh@techco.com")
        response = await client.post(
            f"{PREFIX}/jobs", json={"title": "Dev Python"}, headers=headers
        )

        assert response.status_code == 201
        job = response.json()
        assert job["is_public"] is True
        assert job["status"] == JobStatus.RASCUNHO.value
        assert job["institution_id"] == world.techco.id
        assert gateway.job_events == []

    async def test_transfer_needs_admin_at_destination(self, client, world, seed):
        job = await seed.job(world.uf, world.professor)
        await seed.commit()

        admin = await login(client, "admin@uf.br")
        denied = await client.patch(
            f"{PREFIX}/jobs/{job.id}", json={"institution_id": world.puc.id}, headers=admin
        )
        assert denied.status_code == 403
        assert denied.json()["error"]["reason"] == "transfer_not_permitted"

        root = await login(client, "root@vagas.br")
        moved = await client.patch(
            f"{PREFIX}/jobs/{job.id}", json={"institution_id": world.puc.id}, headers=root
        )
        assert moved.status_code == 200
        assert moved.json()["institution_id"] == world.puc.id
        assert moved.json()["author_id"] == world.professor.id

    async def test_private_job_hidden_from_anonymous(self, client, world, seed):
        private = await seed.job(world.uf, world.professor, JobStatus.OPEN, is_public=False)
        public = await seed.job(world.uf, world.professor, JobStatus.OPEN, is_public=True)
        await seed.commit()

        hidden = await client.get(f"{PREFIX}/jobs/{private.id}")
        assert hidden.status_code == 404
        assert (await client.get(f"{PREFIX}/jobs/{public.id}")).status_code == 200

        catalogue = await client.get(f"{PREFIX}/jobs/public")
        assert [job["id"] for job in catalogue.json()["data"]] == [public.id]

    async def test_demoted_author_keeps_rights(self, client, world, gateway):
        professor = await login(client, "prof@uf.br")
        created = await client.post(
            f"{PREFIX}/jobs",
            json={"title": "Monitoria", "status": "open"},
            headers=professor,
        )
        assert created.status_code == 201
        job_id = created.json()["id"]
        assert created.json()["is_public"] is False
        # private and open: every UF member hears about it
        assert gateway.job_events == [(
            ["admin@uf.br", "aluno@uf.br", "prof@uf.br", "root@vagas.br"],
            job_id,
            TriggerKind.NEW,
        )]

        root = await login(client, "root@vagas.br")
        demoted = await client.put(
            f"{PREFIX}/memberships",
            json={"user_id": world.professor.id, "institution_id": world.uf.id, "role": "student"},
            headers=root,
        )
        assert demoted.status_code == 200
        assert demoted.json()["id"] == world.professor_membership.id

        edited = await client.patch(
            f"{PREFIX}/jobs/{job_id}", json={"description": "Novo texto"}, headers=professor
        )
        assert edited.status_code == 200

        refused = await client.post(f"{PREFIX}/jobs", json={"title": "Outra"}, headers=professor)
        assert refused.status_code == 403

        deleted = await client.delete(f"{PREFIX}/jobs/{job_id}", headers=professor)
        assert deleted.status_code == 204
        assert (await client.get(f"{PREFIX}/jobs/{job_id}", headers=root)).status_code == 404

    async def test_author_keeps_rights_after_membership_removed(self, client, world, seed):
        job = await seed.job(world.uf, world.professor, JobStatus.RASCUNHO)
        await seed.commit()

        root = await login(client, "root@vagas.br")
        removed = await client.delete(
            f"{PREFIX}/memberships/{world.professor_membership.id}", headers=root
        )
        assert removed.status_code == 204

        professor = await login(client, "prof@uf.br")
        assert (await client.get(f"{PREFIX}/jobs/{job.id}", headers=professor)).status_code == 404

        edited = await client.patch(
            f"{PREFIX}/jobs/{job.id}", json={"title": "Monitoria 2"}, headers=professor
        )
        assert edited.status_code == 200
        assert edited.json()["title"] == "Monitoria 2"

        candidates = await client.get(f"{PREFIX}/jobs/{job.id}/applications", headers=professor)
        assert candidates.status_code == 200

        deleted = await client.delete(f"{PREFIX}/jobs/{job.id}", headers=professor)
        assert deleted.status_code == 204

    async def test_writes_on_hidden_job_look_missing(self, client, world, seed):
        job = await seed.job(world.uf, world.professor, JobStatus.OPEN)
        await seed.commit()

        outsider = await login(client, "rh@techco.com")
        patched = await client.patch(
            f"{PREFIX}/jobs/{job.id}", json={"title": "X"}, headers=outsider
        )
        assert patched.status_code == 404
        assert (await client.delete(f"{PREFIX}/jobs/{job.id}", headers=outsider)).status_code == 404

        student = await login(client, "aluno@uf.br")
        refused = await client.patch(f"{PREFIX}/jobs/{job.id}", json={"title": "X"}, headers=student)
        assert refused.status_code == 403
        assert refused.json()["error"]["reason"] == "insufficient_role"

    async def test_admin_tenant_listing(self, client, world, seed):
        other_draft = await seed.job(world.uf, world.professor, JobStatus.RASCUNHO, title="A")
        local_closed = await seed.job(world.uf, world.professor, JobStatus.CLOSED, title="B")
        foreign_public = await seed.job(
            world.puc, None, JobStatus.PUBLISHED, is_public=True, title="C"
        )
        await seed.job(world.puc, None, JobStatus.OPEN, is_public=False, title="D")
        await seed.job(world.puc, None, JobStatus.RASCUNHO, is_public=True, title="E")
        await seed.commit()

        admin = await login(client, "admin@uf.br")
        response = await client.get(f"{PREFIX}/jobs", params={"sort": "asc"}, headers=admin)
        assert response.status_code == 200
        assert [job["id"] for job in response.json()["data"]] == [
            other_draft.id, local_closed.id, foreign_public.id
        ]

        student = await login(client, "aluno@uf.br")
        response = await client.get(f"{PREFIX}/jobs", params={"sort": "asc"}, headers=student)
        assert [job["title"] for job in response.json()["data"]] == ["C"]


@pytest.mark.asyncio
class TestApplicationsAndSavedJobs:
    async def test_apply_review_and_notify(self, client, world, seed, gateway):
        job = await seed.job(world.uf, world.professor, JobStatus.OPEN)
        await seed.commit()

        student = await login(client, "aluno@uf.br")
        applied = await client.post(f"{PREFIX}/jobs/{job.id}/applications", headers=student)
        assert applied.status_code == 201
        again = await client.post(f"{PREFIX}/jobs/{job.id}/applications", headers=student)
        assert again.status_code == 409

        forbidden = await client.get(f"{PREFIX}/jobs/{job.id}/applications", headers=student)
        assert forbidden.status_code == 403

        professor = await login(client, "prof@uf.br")
        candidates = await client.get(f"{PREFIX}/jobs/{job.id}/applications", headers=professor)
        assert candidates.json()["meta"]["total"] == 1

        application_id = applied.json()["id"]
        reviewed = await client.patch(
            f"{PREFIX}/applications/{application_id}/status",
            json={"status": "ACCEPTED"},
            headers=professor,
        )
        assert reviewed.status_code == 200
        assert gateway.application_events[-1][0] == "aluno@uf.br"

        mine = await client.get(f"{PREFIX}/applications/mine", headers=student)
        assert mine.json()["data"][0]["status"] == "ACCEPTED"

    async def test_cannot_apply_to_draft(self, client, world, seed):
        job = await seed.job(world.uf, world.professor, JobStatus.RASCUNHO)
        await seed.commit()

        student = await login(client, "aluno@uf.br")
        response = await client.post(f"{PREFIX}/jobs/{job.id}/applications", headers=student)
        assert response.status_code == 422

    async def test_outsider_cannot_save_private_job(self, client, world, seed):
        job = await seed.job(world.uf, world.professor, JobStatus.OPEN)
        await seed.commit()

        outsider = await login(client, "rh@techco.com")
        response = await client.post(f"{PREFIX}/jobs/{job.id}/save", headers=outsider)
        assert response.status_code == 404

    async def test_savers_hear_about_closing(self, client, world, seed, gateway):
        job = await seed.job(world.uf, world.professor, JobStatus.OPEN)
        await seed.commit()

        student = await login(client, "aluno@uf.br")
        assert (await client.post(f"{PREFIX}/jobs/{job.id}/save", headers=student)).status_code == 200
        assert (await client.post(f"{PREFIX}/jobs/{job.id}/save", headers=student)).status_code == 200
        saved = await client.get(f"{PREFIX}/saved-jobs", headers=student)
        assert saved.json()["meta"]["total"] == 1

        professor = await login(client, "prof@uf.br")
        closed = await client.patch(
            f"{PREFIX}/jobs/{job.id}", json={"status": "closed"}, headers=professor
        )
        assert closed.status_code == 200
        assert gateway.job_events == [(["aluno@uf.br"], job.id, TriggerKind.CLOSED)]


@pytest.mark.asyncio
class TestInboxAndProfile:
    async def test_status_change_lands_in_applicant_inbox(self, client, world, seed):
        job = await seed.job(world.uf, world.professor, JobStatus.OPEN, title="Backend")
        await seed.commit()

        student = await login(client, "aluno@uf.br")
        applied = await client.post(f"{PREFIX}/jobs/{job.id}/applications", headers=student)
        application_id = applied.json()["id"]

        professor = await login(client, "prof@uf.br")
        for status in ("REVIEWING", "REJECTED"):
            response = await client.patch(
                f"{PREFIX}/applications/{application_id}/status",
                json={"status": status},
                headers=professor,
            )
            assert response.status_code == 200

        inbox = (await client.get(f"{PREFIX}/notifications", headers=student)).json()
        assert inbox["unread_count"] == 2
        latest, first = inbox["data"]
        assert latest["link"] == f"/jobs/{job.id}"
        assert latest["message"].startswith('Thank you for your interest in "Backend"')
        assert first["message"] == (
            'The status of your application to "Backend" changed to: REVIEWING'
        )

        reviewer_inbox = (await client.get(f"{PREFIX}/notifications", headers=professor)).json()
        assert reviewer_inbox == {"data": [], "unread_count": 0}

        foreign = await client.post(
            f"{PREFIX}/notifications/{latest['id']}/read", headers=professor
        )
        assert foreign.status_code == 404

        marked = await client.post(f"{PREFIX}/notifications/{latest['id']}/read", headers=student)
        assert marked.status_code == 204
        inbox = (await client.get(f"{PREFIX}/notifications", headers=student)).json()
        assert inbox["unread_count"] == 1

        cleared = await client.post(f"{PREFIX}/notifications/read-all", headers=student)
        assert cleared.status_code == 204
        inbox = (await client.get(f"{PREFIX}/notifications", headers=student)).json()
        assert inbox["unread_count"] == 0
        assert all(item["read"] for item in inbox["data"])

    async def test_unchanged_status_adds_no_notification(self, client, world, seed):
        job = await seed.job(world.uf, world.professor, JobStatus.OPEN)
        await seed.commit()

        student = await login(client, "aluno@uf.br")
        applied = await client.post(f"{PREFIX}/jobs/{job.id}/applications", headers=student)

        professor = await login(client, "prof@uf.br")
        await client.patch(
            f"{PREFIX}/applications/{applied.json()['id']}/status",
            json={"status": "PENDING"},
            headers=professor,
        )

        inbox = (await client.get(f"{PREFIX}/notifications", headers=student)).json()
        assert inbox["unread_count"] == 0

    async def test_change_password_then_login(self, client, world, gateway):
        headers = await login(client, "aluno@uf.br")

        wrong = await client.post(
            f"{PREFIX}/users/me/password",
            json={"old_password": "errada123", "new_password": "novasenha99"},
            headers=headers,
        )
        assert wrong.status_code == 401
        assert gateway.security_alerts == []

        changed = await client.post(
            f"{PREFIX}/users/me/password",
            json={"old_password": "senha1234", "new_password": "novasenha99"},
            headers=headers,
        )
        assert changed.status_code == 200
        assert gateway.security_alerts == ["aluno@uf.br"]

        old = await client.post(
            f"{PREFIX}/auth/login", json={"email": "aluno@uf.br", "password": "senha1234"}
        )
        assert old.status_code == 401
        await login(client, "aluno@uf.br", password="novasenha99")

    async def test_profile_update(self, client, world):
        headers = await login(client, "aluno@uf.br")
        response = await client.patch(
            f"{PREFIX}/users/me",
            json={
                "bio": "Backend e dados",
                "github_url": "https://github.com/aluno",
                "course": "Ciência da Computação",
                "graduation_year": 2027,
            },
            headers=headers,
        )
        assert response.status_code == 200

        me = (await client.get(f"{PREFIX}/users/me", headers=headers)).json()
        assert me["github_url"] == "https://github.com/aluno"
        assert me["graduation_year"] == 2027
        assert me["first_name"] == "aluno"
        assert me["memberships"][0]["role"] == "student"


@pytest.mark.asyncio
class TestUserDeletion:
    async def test_admin_of_every_institution_deletes_user(self, client, world):
        admin = await login(client, "admin@uf.br")
        response = await client.delete(f"{PREFIX}/users/{world.student.id}", headers=admin)
        assert response.status_code == 204

        stale = await client.post(
            f"{PREFIX}/auth/login", json={"email": "aluno@uf.br", "password": "senha1234"}
        )
        assert stale.status_code == 401

    async def test_admin_cannot_delete_user_elsewhere(self, client, world):
        admin = await login(client, "admin@uf.br")
        response = await client.delete(f"{PREFIX}/users/{world.empresa.id}", headers=admin)
        assert response.status_code == 403

    async def test_deleted_user_token_is_rejected(self, client, world):
        student = await login(client, "aluno@uf.br")
        root = await login(client, "root@vagas.br")
        assert (
            await client.delete(f"{PREFIX}/users/{world.student.id}", headers=root)
        ).status_code == 204

        response = await client.get(f"{PREFIX}/users/me", headers=student)
        assert response.status_code == 401

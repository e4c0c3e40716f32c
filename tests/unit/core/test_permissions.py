"""
Tests for the permission engine.

Covers superadmin supremacy, author permanence, transfer rules, private job
opacity and the supplementary institution and application rules.
"""

import logging

import pytest

from core.authorization.decisions import DenyReason, Grant
from core.authorization.lifecycle import JobStatus
from core.authorization.permissions import (
    can_administer_institutions,
    can_assign_role,
    can_cancel_application,
    can_create_job,
    can_delete_job,
    can_delete_user,
    can_edit_job,
    can_manage_application,
    can_manage_institution,
    can_view_job,
    seed_is_public,
)
from core.authorization.roles import Caller, Role
from database.models.applications import ApplicationStatus
from tests.factories import make_job

UNI_A = 1
UNI_B = 2


@pytest.fixture
def admin_a():
    return Caller.build(20, [(UNI_A, Role.ADMIN)], active_institution_id=UNI_A)


@pytest.fixture
def professor_a():
    return Caller.build(10, [(UNI_A, Role.PROFESSOR)], active_institution_id=UNI_A)


@pytest.fixture
def student_a():
    return Caller.build(30, [(UNI_A, Role.STUDENT)], active_institution_id=UNI_A)


@pytest.fixture
def student_b():
    return Caller.build(40, [(UNI_B, Role.STUDENT)], active_institution_id=UNI_B)


class TestSuperadminSupremacy:
    """Superadmin is allowed every operation on every job."""

    @pytest.mark.parametrize("status", list(JobStatus))
    @pytest.mark.parametrize("is_public", [True, False])
    def test_all_job_operations(self, superadmin, status, is_public):
        job = make_job(institution_id=UNI_B, author_id=777, status=status, is_public=is_public)

        assert can_view_job(superadmin, job)
        assert can_edit_job(superadmin, job)
        assert can_edit_job(superadmin, job, new_institution_id=UNI_A)
        assert can_delete_job(superadmin, job)
        assert can_manage_application(superadmin, job)

    def test_create_anywhere_even_unlinked(self, superadmin):
        decision = can_create_job(superadmin, UNI_B)
        assert decision.allowed
        assert decision.grant is Grant.SUPERADMIN
        assert can_create_job(superadmin)

    def test_institution_administration(self, superadmin, admin_a):
        assert can_administer_institutions(superadmin)
        assert not can_administer_institutions(admin_a)


class TestCreateJob:
    def test_operator_in_own_institution(self, professor_a):
        decision = can_create_job(professor_a)
        assert decision.allowed
        assert decision.grant is Grant.OPERATOR

    def test_admin_in_own_institution(self, admin_a):
        assert can_create_job(admin_a, UNI_A).grant is Grant.INSTITUTION_ADMIN

    def test_operator_in_foreign_institution(self, professor_a):
        decision = can_create_job(professor_a, UNI_B)
        assert not decision.allowed
        assert decision.reason is DenyReason.INSUFFICIENT_ROLE

    def test_student_cannot_create(self, student_a):
        assert can_create_job(student_a).reason is DenyReason.INSUFFICIENT_ROLE

    def test_no_active_tenant(self):
        caller = Caller.build(5, [(UNI_A, Role.PROFESSOR)])
        assert can_create_job(caller).reason is DenyReason.NO_ACTIVE_TENANT

    def test_empresa_jobs_start_public(self):
        empresa = Caller.build(5, [(UNI_A, Role.EMPRESA)], active_institution_id=UNI_A)
        assert seed_is_public(empresa, UNI_A)

    def test_other_roles_start_private(self, professor_a, admin_a, superadmin):
        assert not seed_is_public(professor_a, UNI_A)
        assert not seed_is_public(admin_a, UNI_A)
        assert not seed_is_public(superadmin, UNI_A)


class TestAuthorPermanence:
    """Authors keep their rights after losing the membership."""

    def test_author_without_membership(self):
        former_professor = Caller.build(10, [(UNI_B, Role.STUDENT)], active_institution_id=UNI_B)
        job = make_job(institution_id=UNI_A, author_id=10)

        assert can_edit_job(former_professor, job).grant is Grant.AUTHOR
        assert can_delete_job(former_professor, job).grant is Grant.AUTHOR
        assert can_manage_application(former_professor, job).grant is Grant.AUTHOR

    def test_author_with_no_memberships_at_all(self):
        orphan = Caller.build(10)
        assert can_edit_job(orphan, make_job(author_id=10))

    def test_other_operator_cannot_edit(self):
        colleague = Caller.build(11, [(UNI_A, Role.PROFESSOR)], active_institution_id=UNI_A)
        decision = can_edit_job(colleague, make_job(author_id=10))
        assert decision.reason is DenyReason.INSUFFICIENT_ROLE

    def test_authorless_job_needs_admin(self, admin_a, professor_a):
        job = make_job(author_id=None)
        assert can_delete_job(admin_a, job)
        assert not can_delete_job(professor_a, job)


class TestTransfer:
    def test_admin_of_both_institutions(self):
        caller = Caller.build(20, [(UNI_A, Role.ADMIN), (UNI_B, Role.ADMIN)])
        assert can_edit_job(caller, make_job(), new_institution_id=UNI_B)

    def test_admin_of_source_only(self, admin_a):
        decision = can_edit_job(admin_a, make_job(), new_institution_id=UNI_B)
        assert decision.reason is DenyReason.TRANSFER_NOT_PERMITTED

    def test_author_cannot_move_job(self, professor_a):
        decision = can_edit_job(professor_a, make_job(author_id=10), new_institution_id=UNI_B)
        assert decision.reason is DenyReason.TRANSFER_NOT_PERMITTED

    def test_same_institution_is_not_a_transfer(self, professor_a):
        assert can_edit_job(professor_a, make_job(author_id=10), new_institution_id=UNI_A)

    def test_denied_transfer_is_logged(self, admin_a, caplog):
        with caplog.at_level(logging.WARNING, logger="core.authorization.permissions"):
            can_edit_job(admin_a, make_job(), new_institution_id=UNI_B)

        assert "transfer_job" in caplog.text
        assert "transfer_not_permitted" in caplog.text


class TestViewJob:
    """Public visibility and private opacity."""

    @pytest.mark.parametrize("status", [JobStatus.PUBLISHED, JobStatus.OPEN])
    def test_public_active_job_open_to_anonymous(self, status):
        decision = can_view_job(None, make_job(is_public=True, status=status))
        assert decision.allowed
        assert decision.grant is Grant.PUBLIC

    @pytest.mark.parametrize("status", [JobStatus.RASCUNHO, JobStatus.CLOSED])
    def test_public_inactive_job_hidden_from_anonymous(self, status):
        decision = can_view_job(None, make_job(is_public=True, status=status))
        assert decision.reason is DenyReason.UNAUTHENTICATED

    def test_private_job_hidden_from_anonymous(self):
        assert can_view_job(None, make_job()).reason is DenyReason.UNAUTHENTICATED

    def test_private_job_hidden_from_other_tenant(self, student_b):
        decision = can_view_job(student_b, make_job(institution_id=UNI_A))
        assert decision.reason is DenyReason.PRIVATE_JOB

    def test_member_sees_private_job(self, student_a):
        assert can_view_job(student_a, make_job()).grant is Grant.MEMBER

    def test_admin_elsewhere_sees_private_job(self):
        admin_b = Caller.build(21, [(UNI_B, Role.ADMIN)])
        assert can_view_job(admin_b, make_job(institution_id=UNI_A)).grant is Grant.GLOBAL_ADMIN


class TestInstitutionManagement:
    def test_admin_of_active_institution(self, admin_a):
        assert can_manage_institution(admin_a, UNI_A).grant is Grant.INSTITUTION_ADMIN

    def test_admin_acting_elsewhere(self):
        caller = Caller.build(20, [(UNI_A, Role.ADMIN), (UNI_B, Role.STUDENT)], active_institution_id=UNI_B)
        assert can_manage_institution(caller, UNI_A).reason is DenyReason.NOT_MEMBER

    def test_professor_cannot_manage(self, professor_a):
        assert can_manage_institution(professor_a, UNI_A).reason is DenyReason.INSUFFICIENT_ROLE


class TestAssignRole:
    def test_admin_assigns_locally(self, admin_a):
        for role in Role:
            if role is not Role.SUPERADMIN:
                assert can_assign_role(admin_a, UNI_A, role)

    def test_admin_cannot_mint_superadmin(self, admin_a):
        assert can_assign_role(admin_a, UNI_A, Role.SUPERADMIN).reason is DenyReason.INSUFFICIENT_ROLE

    def test_admin_cannot_assign_elsewhere(self, admin_a):
        assert not can_assign_role(admin_a, UNI_B, Role.STUDENT)

    def test_superadmin_assigns_anything(self, superadmin):
        assert can_assign_role(superadmin, UNI_B, Role.SUPERADMIN)


class TestCancelApplication:
    def _application(self, user_id, status=ApplicationStatus.PENDING):
        from types import SimpleNamespace
        return SimpleNamespace(user_id=user_id, status=status)

    def test_owner_while_pending(self, student_a):
        assert can_cancel_application(student_a, self._application(30)).grant is Grant.OWNER

    def test_someone_else(self, student_a):
        decision = can_cancel_application(student_a, self._application(31))
        assert decision.reason is DenyReason.NOT_OWNER

    @pytest.mark.parametrize("status", [
        ApplicationStatus.REVIEWING,
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
    ])
    def test_after_review_started(self, student_a, status):
        decision = can_cancel_application(student_a, self._application(30, status))
        assert decision.reason is DenyReason.INVALID_STATE


class TestDeleteUser:
    def test_admin_of_all_target_institutions(self):
        admin = Caller.build(20, [(UNI_A, Role.ADMIN), (UNI_B, Role.ADMIN)])
        target = Caller.build(30, [(UNI_A, Role.STUDENT), (UNI_B, Role.PROFESSOR)])
        assert can_delete_user(admin, target)

    def test_admin_of_some_target_institutions(self, admin_a):
        target = Caller.build(30, [(UNI_A, Role.STUDENT), (UNI_B, Role.PROFESSOR)])
        assert not can_delete_user(admin_a, target)

    def test_superadmin_target_protected(self, admin_a):
        target = Caller.build(30, [(UNI_A, Role.SUPERADMIN)])
        assert not can_delete_user(admin_a, target)

    def test_user_without_memberships(self, admin_a, superadmin):
        target = Caller.build(30)
        assert not can_delete_user(admin_a, target)
        assert can_delete_user(superadmin, target)

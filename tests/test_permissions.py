"""Tests for the permission engine."""

import pytest

from app.features.hierarchy.errors import DenialReason, NotFound, PermissionDenied, ValidationFailed
from app.features.hierarchy.permissions import (
    ALLOW,
    can_assign_role,
    can_delete,
    can_edit,
    can_edit_fields,
    can_manage,
    can_relink,
    can_view,
    deny,
    validate_links,
    validate_role_transition,
)
from app.features.hierarchy.roles import Actor, Role, UserRecord
from tests.fakes import ORG, actor_for, record

NON_MASTER = [r for r in Role if r is not Role.MASTER]


def _target(user_id: str) -> UserRecord:
    return next(r for r in ORG if r.id == user_id)


class TestCanManage:
    @pytest.mark.parametrize("actor_role", list(Role))
    @pytest.mark.parametrize("target_role", list(Role))
    def test_strict_rank_with_master_override(self, actor_role: Role, target_role: Role) -> None:
        expected = actor_role is Role.MASTER or actor_role.rank > target_role.rank
        assert can_manage(actor_role, target_role) is expected

    def test_master_manages_master(self) -> None:
        assert can_manage(Role.MASTER, Role.MASTER) is True

    @pytest.mark.parametrize("role", NON_MASTER)
    def test_no_same_rank_management(self, role: Role) -> None:
        assert can_manage(role, role) is False

    @pytest.mark.parametrize("role", NON_MASTER)
    def test_nobody_else_manages_master(self, role: Role) -> None:
        assert can_manage(role, Role.MASTER) is False


class TestDecision:
    def test_allow_is_truthy(self) -> None:
        assert ALLOW
        ALLOW.enforce()

    def test_deny_is_falsy_and_carries_reason(self) -> None:
        decision = deny(DenialReason.INSUFFICIENT_RANK)
        assert not decision
        with pytest.raises(PermissionDenied) as exc_info:
            decision.enforce()
        assert exc_info.value.reason is DenialReason.INSUFFICIENT_RANK


class TestCanView:
    def test_admin_cannot_view_master(self) -> None:
        decision = can_view(actor_for("admin"), _target("master"))
        assert not decision
        assert decision.reason is DenialReason.INSUFFICIENT_RANK

    def test_admin_views_own_record(self) -> None:
        assert can_view(actor_for("admin"), _target("admin"))

    def test_user_views_own_record(self) -> None:
        assert can_view(actor_for("u-1"), _target("u-1"))

    def test_admin_cannot_view_peer_admin(self) -> None:
        assert not can_view(actor_for("admin"), _target("admin-2"))

    def test_tl_views_user(self) -> None:
        assert can_view(actor_for("tl-1"), _target("u-1"))

    def test_tl_cannot_view_manager(self) -> None:
        assert not can_view(actor_for("tl-1"), _target("mgr-1"))

    def test_user_cannot_view_other_user(self) -> None:
        decision = can_view(actor_for("u-1"), _target("u-2"))
        assert decision.reason is DenialReason.INSUFFICIENT_RANK

    def test_master_views_everyone(self) -> None:
        master = actor_for("master")
        assert all(can_view(master, r) for r in ORG)


class TestCanEdit:
    def test_same_rule_as_view(self) -> None:
        for actor in (actor_for(i) for i in ("master", "admin", "mgr-1", "tl-1", "u-1")):
            for target in ORG:
                assert can_edit(actor, target) == can_view(actor, target)


class TestCanAssignRole:
    def test_manager_assigns_lower_roles_only(self) -> None:
        manager = actor_for("mgr-1")
        assert can_assign_role(manager, Role.TL)
        assert can_assign_role(manager, Role.USER)
        assert can_assign_role(manager, Role.MANAGER).reason is DenialReason.INSUFFICIENT_RANK

    def test_master_assigns_master(self) -> None:
        assert can_assign_role(actor_for("master"), Role.MASTER)

    def test_user_assigns_nothing(self) -> None:
        user = actor_for("u-1")
        assert not any(can_assign_role(user, role) for role in Role)


class TestCanDelete:
    @pytest.mark.parametrize("role", list(Role))
    async def test_self_delete_always_denied(self, org, role: Role) -> None:
        actor = Actor(id="solo", role=role)
        decision = await can_delete(actor, record("solo", role), org)
        assert decision.reason is DenialReason.SELF_ACTION_FORBIDDEN

    async def test_leaf_can_be_deleted(self, org) -> None:
        assert await can_delete(actor_for("tl-1"), _target("u-1"), org)

    async def test_target_with_dependents(self, org) -> None:
        decision = await can_delete(actor_for("mgr-1"), _target("tl-1"), org)
        assert decision.reason is DenialReason.TARGET_HAS_DEPENDENTS

    async def test_insufficient_rank_checked_before_dependents(self, org) -> None:
        decision = await can_delete(actor_for("tl-1"), _target("mgr-1"), org)
        assert decision.reason is DenialReason.INSUFFICIENT_RANK

    async def test_master_deletes_other_master_without_dependents(self, org) -> None:
        await org.add({"id": "master-2", "role": Role.MASTER})
        assert await can_delete(actor_for("master"), UserRecord(id="master-2", role=Role.MASTER), org)


class TestCanEditFields:
    def test_self_cannot_change_role(self) -> None:
        decision = can_edit_fields(actor_for("tl-1"), _target("tl-1"), {"role": Role.MANAGER})
        assert decision.reason is DenialReason.SELF_ACTION_FORBIDDEN

    @pytest.mark.parametrize("field,value", [("manager_id", "mgr-2"), ("tl_id", "tl-2"), ("status", "inactive")])
    def test_self_cannot_change_links_or_status(self, field: str, value: str) -> None:
        decision = can_edit_fields(actor_for("u-1"), _target("u-1"), {field: value})
        assert decision.reason is DenialReason.SELF_ACTION_FORBIDDEN

    def test_self_may_resend_unchanged_role(self) -> None:
        assert can_edit_fields(actor_for("tl-1"), _target("tl-1"), {"role": "tl", "department": "Ops"})

    def test_self_profile_fields(self) -> None:
        assert can_edit_fields(actor_for("u-1"), _target("u-1"), {"first_name": "Ada"})

    def test_role_change_needs_assignable_role(self) -> None:
        admin = actor_for("admin")
        assert can_edit_fields(admin, _target("mgr-1"), {"role": Role.ADMIN}).reason is DenialReason.INSUFFICIENT_RANK
        assert can_edit_fields(admin, _target("mgr-2"), {"role": Role.TL})


class TestCanRelink:
    async def test_owner_outranked_by_actor(self, org) -> None:
        assert await can_relink(actor_for("mgr-1"), _target("u-1"), {"tl_id": "tl-2"}, org)

    async def test_pulling_from_foreign_branch(self, org) -> None:
        decision = await can_relink(actor_for("tl-1"), _target("u-4"), {"manager_id": "mgr-1", "tl_id": "tl-1"}, org)
        assert decision.reason is DenialReason.INSUFFICIENT_RANK

    async def test_actor_is_current_owner(self, org) -> None:
        assert await can_relink(actor_for("admin"), _target("mgr-1"), {"manager_id": "admin-2"}, org)

    async def test_peer_owner(self, org) -> None:
        decision = await can_relink(actor_for("admin-2"), _target("mgr-1"), {"manager_id": "admin-2"}, org)
        assert not decision

    async def test_unowned_record(self, org) -> None:
        assert await can_relink(actor_for("admin"), _target("mgr-2"), {"manager_id": "admin"}, org)

    async def test_unchanged_links_are_ignored(self, org) -> None:
        assert await can_relink(actor_for("tl-1"), _target("u-4"), {"tl_id": "tl-3", "department": "x"}, org)


class TestValidateLinks:
    async def test_user_without_team_lead(self, org) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            await validate_links(Role.USER, "mgr-1", None, org)
        assert exc_info.value.reason is DenialReason.MISSING_REQUIRED_LINK

    async def test_tl_without_manager(self, org) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            await validate_links(Role.TL, None, None, org)
        assert exc_info.value.reason is DenialReason.MISSING_REQUIRED_LINK

    async def test_user_with_links_is_valid(self, org) -> None:
        await validate_links(Role.USER, "mgr-1", "tl-1", org)

    async def test_manager_needs_no_links(self, org) -> None:
        await validate_links(Role.MANAGER, None, None, org)
        await validate_links(Role.ADMIN, None, None, org)

    @pytest.mark.parametrize(
        "role,manager_id,tl_id",
        [
            (Role.USER, "mgr-1", "mgr-2"),   # team leader link at a manager
            (Role.USER, "tl-2", "tl-1"),     # manager link at a team leader
            (Role.TL, "mgr-1", "tl-2"),      # only users have team leaders
            (Role.MANAGER, "mgr-2", None),   # manager cannot own a manager
        ],
    )
    async def test_invalid_links(self, org, role: Role, manager_id: str, tl_id: str) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            await validate_links(role, manager_id, tl_id, org)
        assert exc_info.value.reason is DenialReason.INVALID_LINK

    @pytest.mark.parametrize(
        "manager_id,tl_id,missing",
        [
            ("ghost", "tl-1", "ghost"),
            ("mgr-1", "phantom", "phantom"),
        ],
    )
    async def test_dangling_links(self, org, manager_id: str, tl_id: str, missing: str) -> None:
        with pytest.raises(NotFound) as exc_info:
            await validate_links(Role.USER, manager_id, tl_id, org)
        assert exc_info.value.entity_id == missing

    async def test_self_reference(self, org) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            await validate_links(Role.MANAGER, "mgr-1", None, org, record_id="mgr-1")
        assert exc_info.value.reason is DenialReason.INVALID_LINK


class TestValidateRoleTransition:
    async def test_team_lead_with_users_cannot_become_user(self, org) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            await validate_role_transition(_target("tl-1"), Role.USER, org)
        assert exc_info.value.reason is DenialReason.INVALID_ROLE_TRANSITION

    async def test_team_lead_with_users_cannot_become_manager(self, org) -> None:
        with pytest.raises(ValidationFailed):
            await validate_role_transition(_target("tl-1"), Role.MANAGER, org)

    async def test_manager_with_team_leads_cannot_become_tl(self, org) -> None:
        with pytest.raises(ValidationFailed):
            await validate_role_transition(_target("mgr-1"), Role.TL, org)

    async def test_manager_may_be_promoted(self, org) -> None:
        await validate_role_transition(_target("mgr-1"), Role.ADMIN, org)

    async def test_record_without_dependents_may_change(self, org) -> None:
        await validate_role_transition(_target("u-4"), Role.TL, org)

    async def test_unchanged_role(self, org) -> None:
        await validate_role_transition(_target("tl-1"), Role.TL, org)

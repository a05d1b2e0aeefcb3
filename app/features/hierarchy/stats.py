"""
Dashboard counters scoped to the actor's position in the tree.
"""
from collections import Counter

from app.features.hierarchy.roles import Actor, Role
from app.features.hierarchy.scope import visible_users
from app.features.users.directory import UserDirectory


async def aggregate(actor: Actor, directory: UserDirectory) -> dict[str, int]:
    """
    Group the actor's visible users by role into role-specific counters.

    master: every role plus the total; admin: managers, team leads, users;
    manager: owned team leads and the user-role members of the two-hop
    closure; tl: owned users; user: nothing.
    """
    # TODO: the manager closure is recomputed per request; cache it per directory snapshot if directories grow large.
    visible = await visible_users(actor, directory)
    by_role = Counter(record.role for record in visible)

    if actor.role is Role.MASTER:
        return {
            "total_employees": len(visible),
            "masters": by_role[Role.MASTER],
            "admins": by_role[Role.ADMIN],
            "managers": by_role[Role.MANAGER],
            "team_leads": by_role[Role.TL],
            "users": by_role[Role.USER],
        }
    if actor.role is Role.ADMIN:
        return {
            "managers": by_role[Role.MANAGER],
            "team_leads": by_role[Role.TL],
            "users": by_role[Role.USER],
        }
    if actor.role is Role.MANAGER:
        owned_team_leads = sum(
            1 for record in visible
            if record.role is Role.TL and record.manager_id == actor.id
        )
        return {
            "team_leads": owned_team_leads,
            "team_members": by_role[Role.USER],
        }
    if actor.role is Role.TL:
        return {"team_members": by_role[Role.USER]}
    if actor.role is Role.USER:
        return {}
    raise AssertionError(f"Unhandled role {actor.role!r}")

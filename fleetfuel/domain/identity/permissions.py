from fleetfuel.core.errors import PermissionDeniedError

from .entities import Identity, Role


def require_active(actor: Identity) -> None:
    if not actor.active:
        raise PermissionDeniedError(f"Identity '{actor.id}' is inactive")


def require_role(actor: Identity, roles: set[Role], *, action: str) -> None:
    """Raise unless the actor is active and holds one of `roles`."""
    require_active(actor)
    if actor.role not in roles:
        allowed = ", ".join(sorted(r.value for r in roles))
        raise PermissionDeniedError(
            f"Role '{actor.role.value}' may not {action} (requires one of: {allowed})"
        )

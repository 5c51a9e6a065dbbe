from ..exceptions import ForbiddenException


def require_owner(resource_owner_id: int, acting_user_id: int, message: str = "Not authorized to modify this resource") -> None:
    """Raise ForbiddenException unless the acting user owns the resource."""
    if resource_owner_id != acting_user_id:
        raise ForbiddenException(message)

from storefront.domain.exceptions import PermissionDeniedError
from storefront.domain.models import Actor


def require_admin(actor: Actor) -> None:
    """Роль проверяется в момент вызова сценария, а не только в UI"""
    if actor is None or not actor.is_admin:
        raise PermissionDeniedError("Операция доступна только администратору")

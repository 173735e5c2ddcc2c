class DomainException(Exception):
    pass


class ValidationError(DomainException):
    pass


class IllegalTransitionError(DomainException):
    def __init__(self, current: str, target: str, reason: str | None = None):
        self.current = current
        self.target = target
        message = f"Переход {current} -> {target} запрещен"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NotFoundError(DomainException):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class NotificationNotFoundError(NotFoundError):
    pass


class PermissionDeniedError(DomainException):
    pass


class ConflictError(DomainException):
    pass


class PersistenceError(DomainException):
    pass


class NotificationDeliveryError(DomainException):
    pass


class CatalogServiceError(DomainException):
    pass


class IdentityServiceError(DomainException):
    pass

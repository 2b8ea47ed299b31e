"""Named failure kinds raised by the services and repositories."""


class DomainError(Exception):
    """Base class; ``code`` is the stable name exposed to API clients."""

    code = "domain_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    code = "not_found"


class NotActiveError(DomainError):
    code = "not_active"


class SelfReferenceError(DomainError):
    code = "self_reference"


class AlreadyExistsError(DomainError):
    code = "already_exists"


class BlockedError(DomainError):
    code = "blocked"


class LimitExceededError(DomainError):
    code = "limit_exceeded"


class InvalidRequestError(DomainError):
    code = "invalid_request"


class RepositoryError(DomainError):
    """Storage or transport failure in a repository adapter."""

    code = "repository_failure"

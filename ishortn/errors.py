class LinkServiceError(Exception):
    """Base class for rejections surfaced to the dashboard / API caller."""


class LinkNotFoundError(LinkServiceError):
    def __init__(self, message="Link not found"):
        super().__init__(message)


class InvalidAliasError(LinkServiceError):
    pass


class AliasUnavailableError(LinkServiceError):
    pass


class PlanRestrictionError(LinkServiceError):
    pass


class WorkspaceLimitError(LinkServiceError):
    pass


class UnsafeUrlError(LinkServiceError):
    pass

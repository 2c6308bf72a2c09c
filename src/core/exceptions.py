class PrimosError(Exception):
    """Base error for failures that map to a client-facing message."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(PrimosError):
    pass


class AlreadyCheckedInError(PrimosError):
    def __init__(self, user):
        super().__init__("Already checked in today (UTC)")
        self.user = user


class IncompatibleStoneError(PrimosError):
    pass


class InsufficientStoneBalanceError(PrimosError):
    pass


class NotFoundError(PrimosError):
    status_code = 404


class MetadataFetchError(Exception):
    pass

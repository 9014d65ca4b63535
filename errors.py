#Error taxonomy for the checkout client


class PosError(Exception):
    pass


class ValidationError(PosError):
    """Operator input rejected locally; never reaches a collaborator."""


class NotFoundError(PosError):
    """The catalog answered but does not know the product."""


class TransportError(PosError):
    """Collaborator unreachable, timed out, or answered with an unexpected payload."""


class CheckoutRejectedError(PosError):
    """The transaction backend answered with a failure status."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code

class LedgerError(Exception):
    """Base class for business-rule rejections raised by the energy ledger.

    Every subclass carries a stable numeric ``code`` that callers surface
    verbatim. Codes 100, 107 and 108 are relied on by external conformance
    suites and must never change.
    """

    code = None

    @property
    def name(self):
        return type(self).__name__


class NotOwner(LedgerError):
    """Raised when an admin-only operation is invoked by someone other than the owner."""

    code = 100

    def __init__(self, caller):
        self.caller = caller
        super().__init__(f"{caller} is not the ledger owner")


class AlreadyRegistered(LedgerError):
    """Raised when a principal registers twice in the same role."""

    code = 101

    def __init__(self, principal, role):
        self.principal = principal
        self.role = role
        super().__init__(f"{principal} is already registered as a {role}")


class NotRegistered(LedgerError):
    """Raised when an operation references a principal with no row in the given role."""

    code = 102

    def __init__(self, principal, role):
        self.principal = principal
        self.role = role
        super().__init__(f"{principal} is not registered as a {role}")


class InsufficientSupply(LedgerError):
    """Raised when a purchase asks for more units than the producer has listed."""

    code = 103

    def __init__(self, producer, requested, available):
        self.producer = producer
        self.requested = requested
        self.available = available
        super().__init__(
            f"Producer {producer}: requested {requested}, available {available}"
        )


class InsufficientRevenue(LedgerError):
    """Raised when a refund would drive a producer's pending revenue below zero."""

    code = 104

    def __init__(self, producer, refund_amount, pending_revenue):
        self.producer = producer
        self.refund_amount = refund_amount
        self.pending_revenue = pending_revenue
        super().__init__(
            f"Producer {producer}: refund {refund_amount}, pending revenue {pending_revenue}"
        )


class InvalidAmount(LedgerError):
    code = 105

    def __init__(self, field, value):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r}")


class InvalidRating(LedgerError):
    code = 106

    def __init__(self, stars):
        self.stars = stars
        super().__init__(f"Rating must be between 1 and 5 stars, got {stars!r}")


class NoPurchaseHistory(LedgerError):
    """Raised when a consumer rates or queries a producer they never bought from."""

    code = 107

    def __init__(self, consumer, producer):
        self.consumer = consumer
        self.producer = producer
        super().__init__(f"{consumer} has no purchases from {producer}")


class RefundExceedsPurchase(LedgerError):
    """Raised when a refund asks for more units than the consumer still holds from a producer."""

    code = 108

    def __init__(self, consumer, producer, requested, outstanding):
        self.consumer = consumer
        self.producer = producer
        self.requested = requested
        self.outstanding = outstanding
        super().__init__(
            f"{consumer} requested a refund of {requested} units from {producer}, "
            f"outstanding {outstanding}"
        )

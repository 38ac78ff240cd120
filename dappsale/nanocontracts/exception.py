class NCFail(Exception):
    """Raised by blueprint code to abort the current transaction.

    The runner restores every contract storage, the native ledger and the
    event log to their state before the call and re-raises the error.
    """
    pass


class Unauthorized(NCFail):
    """Raised when a caller other than the owner invokes a gated method."""
    pass


class NCInvalidContext(NCFail):
    pass


class NCForbiddenAction(NCFail):
    """Raised when a method receives an action kind it does not accept."""
    pass


class NCInsufficientFunds(NCFail):
    pass


class NCMethodNotFound(NCFail):
    pass


class NCContractDoesNotExist(NCFail):
    pass


class NCContractAlreadyExists(NCFail):
    pass


class BlueprintDoesNotExist(NCFail):
    pass

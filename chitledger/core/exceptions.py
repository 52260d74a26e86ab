class LedgerError(Exception):
    """
    Base error raised by the domain services.

    Route handlers let these propagate; the global handler turns them into
    the standard error envelope with `status_code`.
    """
    status_code: int = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

class NotFoundError(LedgerError):
    status_code = 404

class ConflictError(LedgerError):
    status_code = 409

class BusinessRuleError(LedgerError):
    status_code = 400

"""Service-level errors, mapped to HTTP responses in crapstable.main."""


class CrapsTableError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccountNotFoundError(CrapsTableError):
    status_code = 404

    def __init__(self, key: str):
        super().__init__("Account not found")
        self.key = key


class AccountExistsError(CrapsTableError):
    status_code = 409


class RollStateError(CrapsTableError):
    """A roll was started twice, or finished without being started."""

    status_code = 409


class LoanError(CrapsTableError):
    pass


class BetRejectedError(CrapsTableError):
    def __init__(self, reason: str):
        super().__init__(f"Bet rejected: {reason}")
        self.reason = reason

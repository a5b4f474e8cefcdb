"""Domain errors. Each one maps to an HTTP status and a {"message": ...} body."""


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StoreError):
    status_code = 404


class Conflict(StoreError):
    # Duplicate writes (e.g. a second review) are reported as 400 to clients
    status_code = 400


class ValidationFailed(StoreError):
    status_code = 400


class PersistenceError(StoreError):
    status_code = 500


class PaymentUnavailable(StoreError):
    status_code = 503

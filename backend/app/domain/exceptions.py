"""Domain-specific exceptions — framework-independent."""


class ValidationError(Exception):
    """Raised when input is rejected before any I/O happens."""

    def __init__(self, message: str, fields: list[str] | None = None):
        self.message = message
        self.fields = fields or []
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class InvalidTransitionError(Exception):
    """Raised when a status change breaks the lending state machine."""

    def __init__(self, action: str, current_status: str, message: str | None = None):
        self.action = action
        self.current_status = current_status
        super().__init__(
            message or f"Cannot {action} a record in status {current_status}"
        )


class AlreadyBorrowedError(InvalidTransitionError):
    """Borrow attempted on a record that is already lent out.

    Callers should offer to mark the record as returned instead of
    overwriting the current borrower.
    """

    def __init__(self, record_id: str, borrowed_to: str | None):
        self.record_id = record_id
        self.borrowed_to = borrowed_to
        super().__init__(
            "borrow",
            "PRESTADO",
            f"Record '{record_id}' is already borrowed by '{borrowed_to}'",
        )


class PersistenceError(Exception):
    """Raised when the backing document store fails."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Persistence operation '{operation}' failed{detail}")


class AuthenticationError(Exception):
    """Raised when credentials or tokens are rejected."""

    def __init__(self, message: str = "Invalid credentials"):
        self.message = message
        super().__init__(message)

class CounterError(Exception):
    """Base exception for the page view counter"""


class InvalidInput(CounterError):
    """Raised for request input the caller has to correct"""


class MissingInput(InvalidInput):
    """Raised when a required path or key is absent"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing '{field}' parameter")


class InvalidCursor(InvalidInput):
    """Raised when a listing cursor was not produced by the store"""

    def __init__(self, cursor: str):
        self.cursor = cursor
        super().__init__(f"Invalid cursor {cursor!r}")


class StoreError(CounterError):
    """Raised when a get/put/delete/list call on the key-value store fails"""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class DecodeFailure(CounterError):
    """Raised by a single segment decode; never escapes the key codec"""

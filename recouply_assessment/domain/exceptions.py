"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInput(DomainException):
    """Assessment input is negative, non-finite, or outside its enumerated set"""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class RateLimitExceeded(DomainException):
    """Caller exceeded the request budget for an action"""

    def __init__(self, result):
        super().__init__(result.message or "Rate limit exceeded. Please try again later.")
        self.result = result

"""
Domain Errors

Every rule violation detected by the engine is a DomainError. They subclass
ValueError so callers that only care about "bad input" can keep catching
ValueError, while the `code` attribute gives presentation layers a stable
key to pick a user-facing message.
"""


class DomainError(ValueError):
    """Base class for all rule violations"""

    code = 'domain_error'

    def __init__(self, message: str = ''):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {'code': self.code, 'message': self.message}


class InvalidWindow(DomainError):
    """Window end is not strictly after its start"""

    code = 'invalid_window'

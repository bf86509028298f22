"""
Keyhub Exceptions

Error taxonomy shared by the store, the import/export reconciler and the web
layer. Key validation itself never raises; see translation/validator.py.
"""


class KeyhubError(Exception):
    """Base error with optional machine-readable code and details."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidKeyError(KeyhubError):
    """A mutation was attempted with a key the validator rejected."""

    def __init__(self, key: str, result):
        super().__init__(result.message or "Invalid translation key", code="invalid_key",
                         details={"key": key})
        self.key = key
        self.result = result


class InvalidInputError(KeyhubError):
    """Non-key input (names, language lists, options) is unusable."""


class NotFoundError(KeyhubError):
    """A referenced project, key or language does not exist."""


class ConflictError(KeyhubError):
    """A name or code collides with an existing record."""


class InvalidOperationError(KeyhubError):
    """The operation is not allowed in the current state."""


class ImportFormatError(KeyhubError):
    """An import payload could not be parsed. `code` names the cause."""


class StorageError(KeyhubError):
    """The database or file system failed; nothing was committed."""

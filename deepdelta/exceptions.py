"""Custom exceptions for the deepdelta engine."""


class DeepDeltaError(Exception):
    """Base exception for deepdelta errors."""
    pass


class ValidationError(DeepDeltaError):
    """Raised when an argument to the engine is not usable."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MaxDepthExceededError(DeepDeltaError):
    """Raised when a configured maximum nesting depth is exceeded."""
    def __init__(self, depth: int, path: str):
        super().__init__(f"Maximum depth ({depth}) exceeded at path: {path}")
        self.depth = depth
        self.path = path


class ChangeFormatError(DeepDeltaError):
    """Raised when a serialized change record cannot be decoded."""
    def __init__(self, message: str, data=None):
        super().__init__(message)
        self.message = message
        self.data = data


class RuleError(DeepDeltaError):
    """Raised when a path filter rule is invalid."""
    def __init__(self, rule: str, message: str):
        super().__init__(f"Invalid rule '{rule}': {message}")
        self.rule = rule
        self.message = message


class DocumentLoadError(DeepDeltaError):
    """Raised when a YAML/JSON document cannot be read."""
    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot load document '{path}': {reason}")
        self.path = path
        self.reason = reason

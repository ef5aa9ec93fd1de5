"""Store-specific exceptions for error handling."""


class StoreError(Exception):
    """Base exception for all store operations."""
    pass


class StoreAPIError(StoreError):
    """HTTP error from the host admin API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class UserNotFoundError(StoreError):
    """User lookup by id failed."""
    pass


class UsernameTakenError(StoreError):
    """Create or rename failed - another account already holds the username."""
    pass


class SettingsUpdateError(StoreError):
    """System settings could not be written."""
    pass


class TokenIssueError(StoreError):
    """Exchange token could not be issued."""
    pass

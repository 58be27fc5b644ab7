from typing import Any, Optional


class FirebaseAuthErr(Exception):
    """
    Base class of every error raised by this package.
    """


'''
An error message that indicates that an operation requiring a session was attempted while logged out.
'''
class ErrNotAuthenticated(FirebaseAuthErr):
    def __init__(self):
        super().__init__("You are not authenticated.")


'''
Raised by login when the provider requires verified users and the account has not been verified yet.
'''
class ErrUserNotVerified(FirebaseAuthErr):
    def __init__(self):
        super().__init__("Please verify user before signing in!")


'''
Raised when the identity provider reports the account as disabled.
'''
class ErrAccountDisabled(FirebaseAuthErr):
    def __init__(self):
        super().__init__("User has been disabled")


class ProviderRequestErr(FirebaseAuthErr):
    """
    Exception thrown when a request to the identity provider fails, either on the transport
    level or with a non successful HTTP status.
    """
    def __init__(self, message: str, status: Optional[int] = None, body: Any = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body
        self.url = url


class InvalidResponseErr(ProviderRequestErr):
    """
    Exception thrown when the identity provider answered, but the payload doesn't have the expected shape.
    """

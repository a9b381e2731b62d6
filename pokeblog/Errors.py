# =============================================================================
# ERROR TYPES
# =============================================================================
# Failures from the hosted services are converted into these so that routes
# only need to catch one family and show its message to the user.


class PokeBlogError(Exception):
    """Base class for every error raised by PokeBlog code."""

    def __init__(self, message, *, context=None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class AuthError(PokeBlogError):
    """Raised when the auth provider rejects or cannot serve a request."""

    def __init__(self, message, *, code=None, context=None):
        super().__init__(message, context=context)
        self.code = code


class BackendError(PokeBlogError):
    """Raised when a database or storage call fails."""

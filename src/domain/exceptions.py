class AppConfigException(Exception):
    """Base exception for all App Configuration client errors."""
    pass

class AuthorizerConstructionException(AppConfigException):
    """Raised when an authorizer cannot be built from the given credentials."""
    pass

class AuthorizationException(AppConfigException):
    """Raised when a token could not be obtained for an outgoing request."""
    pass

class ResponseException(AppConfigException):
    """
    Raised when the service answers with a status code of 400 or above.
    The body is kept verbatim; error payloads do not follow a single schema.
    """
    def __init__(self, status: int, reason: str, body: str):
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"ERROR: {status} {reason} - Response Body: {body}")

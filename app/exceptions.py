# app/exceptions.py
"""Custom exceptions for the Beekeeper application.

Services raise these; ``app.error_handlers`` turns them into JSON responses
using ``status_code`` and ``title``.
"""


class BeekeeperException(Exception):
    """Base exception for all application-specific exceptions."""
    status_code = 400
    title = 'Bad Request'
    default_message = 'The request could not be completed.'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


# --- Validation Exceptions ---

class ValidationFailed(BeekeeperException):
    """Raised when submitted data fails validation."""
    title = 'Validation Failed'
    default_message = 'The submitted data is invalid.'


class InvalidParent(ValidationFailed):
    """Raised when a reply points at a comment outside its article or thread."""
    default_message = 'Invalid parent comment'


class NestingCycleError(ValidationFailed):
    """Raised when a parent assignment would make a comment its own ancestor."""
    default_message = 'A comment cannot be nested under itself or one of its replies.'


# --- Permission Exceptions ---

class AuthorizationDenied(BeekeeperException):
    status_code = 403
    title = 'Access Forbidden'
    default_message = 'You do not have permission to perform this action.'


class ForumBanned(AuthorizationDenied):
    """Raised when a user with an active forum ban tries to post."""
    default_message = 'You are banned from participating in the forum'


class FeatureDisabled(AuthorizationDenied):
    """Raised when a route belongs to a feature that is switched off."""

    def __init__(self, feature_name, message=None):
        self.feature_name = feature_name
        super().__init__(message or f'{feature_name.capitalize()} feature is currently disabled')


class ContentBlocked(AuthorizationDenied):
    default_message = 'This content has been blocked by a moderator.'


# --- Lookup Exceptions ---

class ResourceNotFound(BeekeeperException):
    status_code = 404
    title = 'Not Found'
    default_message = 'The requested resource does not exist.'


class Conflict(BeekeeperException):
    """Raised when a write would violate a uniqueness rule or the current state."""
    status_code = 409
    title = 'Conflict'
    default_message = 'The request conflicts with the current state of the resource.'

"""
Error taxonomy shared by the ledger, billing and tenancy services.

Every service failure a caller can act on is one of these types. Each carries
a stable ``code`` so request handlers can pick a user-facing message without
parsing text. ``Forbidden`` and ``NotFound`` also subclass Django's own
exceptions so a view layer maps them to 403/404 unchanged.
"""

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied


class LedgerError(Exception):
    code = "error"
    default_message = "The operation could not be completed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(LedgerError, ObjectDoesNotExist):
    code = "not_found"
    default_message = "Not found."


class Forbidden(LedgerError, PermissionDenied):
    code = "forbidden"
    default_message = "You do not have access to this record."


class Locked(LedgerError):
    code = "locked"
    default_message = "Entry has been verified by the tenant and can no longer be changed."


class WindowExpired(LedgerError):
    code = "window_expired"
    default_message = "Edit window has expired."


class AlreadyVerified(LedgerError):
    code = "already_verified"
    default_message = "Already verified."


class InvalidInput(LedgerError):
    code = "invalid_input"
    default_message = "Invalid input."

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = dict(errors or {})

    @classmethod
    def from_form(cls, form):
        """Build from a bound, invalid Django form."""
        errors = {field: [str(e) for e in errs] for field, errs in form.errors.items()}
        first = next(iter(errors.values()), [cls.default_message])[0]
        return cls(first, errors=errors)

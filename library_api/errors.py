"""
Error taxonomy for the lending API.

Every error the services raise on purpose is a ``LibraryError``; controllers
turn it into ``{"success": False, "error": code, "message": ...}`` with the
matching HTTP status. Anything else is a bug and is left to Flask.
"""


class LibraryError(Exception):
    code = "library_error"
    status_code = 400
    message = "Request failed"

    def __init__(self, message=None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self):
        return {"success": False, "error": self.code, "message": self.message}


# validation: rejected before any transaction starts
class ValidationError(LibraryError):
    code = "validation_error"
    message = "Invalid request"


# policy
class DuplicateBorrow(LibraryError):
    code = "duplicate_borrow"
    message = "You have already borrowed this book"


class BorrowLimitExceeded(LibraryError):
    code = "borrow_limit_exceeded"
    message = "Active loan limit reached"


class Forbidden(LibraryError):
    code = "forbidden"
    status_code = 403
    message = "Not allowed"


# resource state
class BookUnavailable(LibraryError):
    code = "book_unavailable"
    message = "No copies available"


class BookNotFound(LibraryError):
    code = "book_not_found"
    status_code = 404
    message = "Book not found"


class NoActiveLoan(LibraryError):
    code = "no_active_loan"
    status_code = 404
    message = "Active loan not found"


class AlreadyReturned(LibraryError):
    code = "already_returned"
    message = "This loan has already been returned"


class UserNotFound(LibraryError):
    code = "user_not_found"
    status_code = 404
    message = "User not found"


class Conflict(LibraryError):
    code = "conflict"
    status_code = 409
    message = "Conflicting state"


class InvalidCredentials(LibraryError):
    code = "invalid_credentials"
    status_code = 401
    message = "Invalid email or password"


# transient: storage conflict that survived every retry
class TransientStorageError(LibraryError):
    code = "transient_storage_error"
    status_code = 503
    message = "Storage is busy, please retry"

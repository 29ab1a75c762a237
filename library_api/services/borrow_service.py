from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError

from library_api.errors import (
    AlreadyReturned,
    BookNotFound,
    BookUnavailable,
    BorrowLimitExceeded,
    DuplicateBorrow,
    Forbidden,
    NoActiveLoan,
    UserNotFound,
    ValidationError,
)
from library_api.models.loan import Loan, LoanState
from library_api.repositories.book_repo import BookRepo
from library_api.repositories.loan_repo import LoanRepo
from library_api.repositories.user_repo import UserRepo
from library_api.services.policy import can_borrow, due_date_for, may_act_on_loan
from library_api.services.unit_of_work import run_in_transaction
from library_api.utils.clock import utcnow


class BorrowService:
    """
    Borrow and return, each as one unit of work over the books and loans tables.

    Invariants held here:
      * 0 <= book.available <= book.quantity
      * at most one active loan per (user, book)
      * available == quantity - active loans on the book
    """

    @staticmethod
    def borrow_book(caller, book_id: int, now=None):
        """Returns (loan, book) after the loan and the decrement are committed together."""
        max_loans = current_app.config.get("MAX_ACTIVE_LOANS", 5)
        days = current_app.config.get("LOAN_PERIOD_DAYS", 14)
        borrowed_at = now or utcnow()

        def _work():
            # serialise this user's borrows so the checks below stay true until commit
            if not UserRepo.lock_for_borrow(caller.user_id):
                raise UserNotFound()

            if LoanRepo.find_active(caller.user_id, book_id):
                raise DuplicateBorrow()

            active = LoanRepo.count_active(caller.user_id)
            if not can_borrow(active, max_loans):
                raise BorrowLimitExceeded(f"Active loan limit reached ({active}/{max_loans})")

            if not BookRepo.take_copy(book_id):
                if BookRepo.get(book_id) is None:
                    raise BookNotFound()
                raise BookUnavailable()

            loan = LoanRepo.add(Loan(
                user_id=caller.user_id,
                book_id=book_id,
                borrowed_at=borrowed_at,
                due_date=due_date_for(borrowed_at, days),
                returned_at=None,
            ))
            return loan, BookRepo.get(book_id, refresh=True)

        try:
            # IntegrityError here is the active-loan index losing a race;
            # the retry sees the winner's loan and reports DuplicateBorrow
            loan, book = run_in_transaction(
                _work, retry_on=(OperationalError, IntegrityError), label="borrow"
            )
        except (DuplicateBorrow, BorrowLimitExceeded, BookUnavailable) as e:
            current_app.logger.info(
                f"[borrow] refused user={caller.user_id} book={book_id}: {e.code}"
            )
            raise

        current_app.logger.info(
            f"[borrow] user={caller.user_id} book={book_id} loan={loan.id} "
            f"due={loan.due_date.isoformat()} available={book.available}/{book.quantity}"
        )
        return loan, book

    @staticmethod
    def return_book(caller, loan_id: int = None, book_id: int = None, now=None):
        """
        Closes a loan and puts the copy back on the shelf. Returns (loan, book).

        ``loan_id`` is the canonical key and lets a librarian close anyone's loan.
        ``book_id`` looks up the caller's own active loan for that book.
        """
        if (loan_id is None) == (book_id is None):
            raise ValidationError("Provide exactly one of loan_id or book_id")

        returned_at = now or utcnow()

        def _work():
            if loan_id is not None:
                loan = LoanRepo.get(loan_id)
                if loan is None:
                    raise NoActiveLoan()
                if not may_act_on_loan(caller, loan.user_id):
                    raise Forbidden("This loan belongs to another user")
            else:
                loan = LoanRepo.find_active(caller.user_id, book_id)
                if loan is None:
                    raise NoActiveLoan()

            if loan.state is LoanState.RETURNED:
                raise AlreadyReturned()

            # a concurrent return may have closed it since the read above
            if not LoanRepo.mark_returned(loan.id, returned_at):
                raise AlreadyReturned()

            book = None
            if loan.book_id is not None:
                if not BookRepo.put_back_copy(loan.book_id):
                    current_app.logger.warning(
                        f"[return] loan={loan.id} points at missing book={loan.book_id}"
                    )
                book = BookRepo.get(loan.book_id, refresh=True)

            return LoanRepo.refresh(loan.id), book

        loan, book = run_in_transaction(_work, retry_on=(OperationalError,), label="return")

        current_app.logger.info(
            f"[return] user={caller.user_id} loan={loan.id} book={loan.book_id} "
            f"available={book.available if book else None}"
        )
        return loan, book

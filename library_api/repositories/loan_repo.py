from datetime import datetime

from sqlalchemy import case, func, update

from library_api.models.book import Book
from library_api.models.loan import Loan
from library_api.extensions import db


class LoanRepo:
    @staticmethod
    def get(loan_id: int):
        return db.session.get(Loan, loan_id)

    @staticmethod
    def find_active(user_id: int, book_id: int):
        return Loan.query.filter(
            Loan.user_id == user_id,
            Loan.book_id == book_id,
            Loan.returned_at.is_(None),
        ).first()

    @staticmethod
    def count_active(user_id: int) -> int:
        return Loan.query.filter(Loan.user_id == user_id, Loan.returned_at.is_(None)).count()

    @staticmethod
    def count_active_for_book(book_id: int) -> int:
        return Loan.query.filter(Loan.book_id == book_id, Loan.returned_at.is_(None)).count()

    @staticmethod
    def add(loan: Loan):
        db.session.add(loan)
        db.session.flush()
        return loan

    @staticmethod
    def mark_returned(loan_id: int, now: datetime) -> bool:
        """Sets returned_at iff the loan is still active."""
        result = db.session.execute(
            update(Loan)
            .where(Loan.id == loan_id, Loan.returned_at.is_(None))
            .values(returned_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def refresh(loan_id: int):
        return db.session.get(Loan, loan_id, populate_existing=True)

    @staticmethod
    def _filtered(query, status: str, now: datetime):
        if status == "borrowed":
            return query.filter(Loan.returned_at.is_(None))
        if status == "returned":
            return query.filter(Loan.returned_at.isnot(None))
        if status == "overdue":
            return query.filter(Loan.returned_at.is_(None), Loan.due_date < now)
        return query

    @staticmethod
    def list_by_user(user_id: int, status: str, now: datetime):
        query = LoanRepo._filtered(Loan.query.filter_by(user_id=user_id), status, now)
        return query.order_by(Loan.borrowed_at.desc(), Loan.id.desc()).all()

    @staticmethod
    def page_all(status: str, now: datetime, page: int, limit: int):
        query = LoanRepo._filtered(Loan.query, status, now)
        total = query.count()
        rows = (
            query.order_by(Loan.borrowed_at.desc(), Loan.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def counts(now: datetime):
        active = func.sum(case((Loan.returned_at.is_(None), 1), else_=0))
        overdue = func.sum(
            case(((Loan.returned_at.is_(None)) & (Loan.due_date < now), 1), else_=0)
        )
        row = db.session.query(func.count(Loan.id), active, overdue).one()
        total, active_n, overdue_n = int(row[0]), int(row[1] or 0), int(row[2] or 0)
        return {
            "total": total,
            "active": active_n,
            "returned": total - active_n,
            "overdue": overdue_n,
        }

    @staticmethod
    def top_books(limit: int = 5):
        """(book_id, title, loans) for the most borrowed books still in the catalog."""
        loans = func.count(Loan.id)
        return (
            db.session.query(Loan.book_id, Book.title, loans.label("loans"))
            .join(Book, Book.id == Loan.book_id)
            .group_by(Loan.book_id, Book.title)
            .order_by(loans.desc(), Loan.book_id)
            .limit(limit)
            .all()
        )

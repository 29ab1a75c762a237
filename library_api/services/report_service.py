from library_api.repositories.book_repo import BookRepo
from library_api.repositories.loan_repo import LoanRepo
from library_api.utils.clock import utcnow


class ReportService:
    """Read-only views over the loans table. Overdue is computed against ``now``."""

    @staticmethod
    def my_loans(user_id: int, status: str = "all", now=None):
        return LoanRepo.list_by_user(user_id, status, now or utcnow())

    @staticmethod
    def all_loans(status: str = "all", page: int = 1, limit: int = 10, now=None):
        rows, total = LoanRepo.page_all(status, now or utcnow(), page, limit)
        pages = (total + limit - 1) // limit if limit else 0
        return rows, {"page": page, "limit": limit, "total": total, "pages": pages}

    @staticmethod
    def stats(now=None):
        top = [
            {"book_id": book_id, "title": title, "loans": int(count)}
            for book_id, title, count in LoanRepo.top_books()
        ]
        return {
            "loans": LoanRepo.counts(now or utcnow()),
            "books": BookRepo.totals(),
            "most_borrowed": top,
        }

from flask import current_app
from sqlalchemy.exc import IntegrityError

from library_api.errors import BookNotFound, Conflict, ValidationError
from library_api.models.book import Book, BookCategory
from library_api.repositories.book_repo import BookRepo
from library_api.repositories.loan_repo import LoanRepo
from library_api.services.unit_of_work import run_in_transaction
from library_api.utils.clock import utcnow
from library_api.utils.validators import optional_int, optional_str, required_str

EARLIEST_PUBLISHED_YEAR = 1000


def _category(value):
    category = BookCategory.parse(value)
    if category is None:
        raise ValidationError(f"category must be one of {', '.join(c.value for c in BookCategory)}")
    return category.value


def _descriptive_fields(data: dict) -> dict:
    """description / category / publishedYear present in ``data``, validated."""
    fields = {}
    if "description" in data:
        fields["description"] = optional_str(data, "description", max_len=1000) or None
    if data.get("category") is not None:
        fields["category"] = _category(data["category"])
    year_key = "published_year" if "published_year" in data else "publishedYear"
    if year_key in data:
        fields["published_year"] = optional_int(
            data, year_key, minimum=EARLIEST_PUBLISHED_YEAR, maximum=utcnow().year
        )
    return fields


class BookService:
    @staticmethod
    def list_books(q: str = None, category: str = None, page: int = 1, limit: int = 10):
        if category:
            category = _category(category)
        rows, total = BookRepo.page((q or "").strip() or None, category, page, limit)
        pages = (total + limit - 1) // limit if limit else 0
        return rows, {"page": page, "limit": limit, "total": total, "pages": pages}

    @staticmethod
    def get_book(book_id: int):
        book = BookRepo.get(book_id)
        if not book:
            raise BookNotFound()
        return book

    @staticmethod
    def create_book(data: dict):
        title = required_str(data, "title", max_len=200)
        author = required_str(data, "author", max_len=100)
        isbn = required_str(data, "isbn", max_len=32)
        quantity = optional_int(data, "quantity", minimum=1)
        if quantity is None:
            raise ValidationError("quantity is required")
        if "available" in data:
            raise ValidationError("available is derived from loans and cannot be set")
        extra = _descriptive_fields(data)

        def _work():
            if BookRepo.get_by_isbn(isbn):
                raise Conflict("ISBN already exists")
            return BookRepo.add(Book(
                title=title, author=author, isbn=isbn, quantity=quantity, available=quantity, **extra
            ))

        try:
            book = run_in_transaction(_work, label="book-create")
        except IntegrityError:
            raise Conflict("ISBN already exists")
        current_app.logger.info(f"[books] created id={book.id} isbn={book.isbn} quantity={quantity}")
        return book

    @staticmethod
    def update_book(book_id: int, data: dict):
        """
        Partial update. A new ``quantity`` shifts ``available`` by the same delta
        and may not drop below the copies on loan.
        """
        fields = {}
        for key, max_len in (("title", 200), ("author", 100), ("isbn", 32)):
            if key in data:
                fields[key] = required_str(data, key, max_len=max_len)
        fields.update(_descriptive_fields(data))
        quantity = optional_int(data, "quantity", minimum=0)
        if "available" in data:
            raise ValidationError("available is derived from loans and cannot be set")

        def _work():
            book = BookRepo.get(book_id)
            if not book:
                raise BookNotFound()

            if "isbn" in fields and fields["isbn"] != book.isbn and BookRepo.get_by_isbn(fields["isbn"]):
                raise Conflict("ISBN already exists")
            for k, v in fields.items():
                setattr(book, k, v)
            BookRepo.save()

            if quantity is not None and quantity != book.quantity:
                if not BookRepo.set_quantity(book_id, quantity):
                    raise Conflict("Quantity cannot be less than number of borrowed copies")

            return BookRepo.get(book_id, refresh=True)

        try:
            book = run_in_transaction(_work, label="book-update")
        except IntegrityError:
            raise Conflict("ISBN already exists")
        current_app.logger.info(f"[books] updated id={book.id} quantity={book.quantity} available={book.available}")
        return book

    @staticmethod
    def delete_book(book_id: int):
        def _work():
            if not BookRepo.get(book_id):
                raise BookNotFound()
            if LoanRepo.count_active_for_book(book_id) or not BookRepo.delete_if_idle(book_id):
                raise Conflict("Cannot delete: copies are currently borrowed")

        run_in_transaction(_work, label="book-delete")
        current_app.logger.info(f"[books] deleted id={book_id}")

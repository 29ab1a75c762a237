from sqlalchemy import case, func, or_, update, delete

from library_api.models.book import Book
from library_api.extensions import db
from library_api.utils.clock import utcnow


class BookRepo:
    @staticmethod
    def page(q: str = None, category: str = None, page: int = 1, limit: int = 10):
        query = Book.query
        if q:
            pattern = f"%{q}%"
            query = query.filter(or_(Book.title.ilike(pattern), Book.author.ilike(pattern)))
        if category:
            query = query.filter(Book.category == category)
        total = query.count()
        rows = query.order_by(Book.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return rows, total

    @staticmethod
    def get(book_id: int, refresh: bool = False):
        return db.session.get(Book, book_id, populate_existing=refresh)

    @staticmethod
    def get_by_isbn(isbn: str):
        return Book.query.filter_by(isbn=isbn).first()

    @staticmethod
    def add(book: Book):
        db.session.add(book)
        db.session.flush()
        return book

    @staticmethod
    def save():
        db.session.flush()

    @staticmethod
    def take_copy(book_id: int) -> bool:
        """available -= 1 iff available > 0, as one statement."""
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available > 0)
            .values(available=Book.available - 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def put_back_copy(book_id: int) -> bool:
        """available += 1, clamped to quantity."""
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id)
            .values(
                available=case(
                    (Book.available + 1 > Book.quantity, Book.quantity),
                    else_=Book.available + 1,
                ),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def set_quantity(book_id: int, quantity: int) -> bool:
        """
        Moves quantity and available by the same delta. Refused (False) when the
        new quantity is below the number of copies on loan. The right-hand sides
        read the row as it was before the update.
        """
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.quantity - Book.available <= quantity)
            .values(
                available=Book.available + (quantity - Book.quantity),
                quantity=quantity,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def delete_if_idle(book_id: int) -> bool:
        """Deletes only while every copy is on the shelf."""
        result = db.session.execute(
            delete(Book)
            .where(Book.id == book_id, Book.available == Book.quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def totals():
        row = db.session.query(
            func.count(Book.id),
            func.coalesce(func.sum(Book.quantity), 0),
            func.coalesce(func.sum(Book.available), 0),
        ).one()
        return {"titles": int(row[0]), "copies": int(row[1]), "available": int(row[2])}

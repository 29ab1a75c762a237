import enum

from library_api.extensions import db
from library_api.utils.clock import utcnow


class BookCategory(str, enum.Enum):
    FICTION = "Fiction"
    NON_FICTION = "Non-Fiction"
    SCIENCE = "Science"
    TECHNOLOGY = "Technology"
    HISTORY = "History"
    BIOGRAPHY = "Biography"
    CHILDREN = "Children"
    REFERENCE = "Reference"
    OTHER = "Other"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            return None


class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_books_quantity_nonneg"),
        db.CheckConstraint("available >= 0", name="ck_books_available_nonneg"),
        db.CheckConstraint("available <= quantity", name="ck_books_available_le_quantity"),
        # ids of deleted books are never handed out again; old loans must not point at a new title
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(100), nullable=False, index=True)
    isbn = db.Column(db.String(32), unique=True, nullable=False, index=True)

    description = db.Column(db.String(1000), nullable=True)
    category = db.Column(db.String(20), nullable=False, default=BookCategory.OTHER.value, index=True)
    published_year = db.Column(db.Integer, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    available = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def on_loan(self) -> int:
        return self.quantity - self.available

import enum

from library_api.extensions import db
from library_api.utils.clock import utcnow


class Role(str, enum.Enum):
    LIBRARIAN = "librarian"
    BORROWER = "borrower"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_librarian(self) -> bool:
        return self is Role.LIBRARIAN


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=Role.BORROWER.value)

    # bumped inside every borrow transaction; serialises one user's borrows
    loan_seq = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

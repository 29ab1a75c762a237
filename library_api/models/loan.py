import enum

from library_api.extensions import db
from library_api.utils.clock import utcnow


class LoanState(str, enum.Enum):
    """Stored lifecycle of a loan. Overdue is a view over ACTIVE, not a state."""

    ACTIVE = "active"
    RETURNED = "returned"


class Loan(db.Model):
    __tablename__ = "loans"
    # partial unique index on (user_id, book_id) WHERE returned_at IS NULL: see db_objects.py

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id", ondelete="SET NULL"), nullable=True, index=True)

    borrowed_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    due_date = db.Column(db.DateTime, nullable=False)
    returned_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", backref="loans")
    book = db.relationship("Book", backref="loans")

    @property
    def state(self) -> LoanState:
        return LoanState.RETURNED if self.returned_at is not None else LoanState.ACTIVE

    def is_overdue(self, now=None) -> bool:
        return self.state is LoanState.ACTIVE and self.due_date < (now or utcnow())

    def status(self, now=None) -> str:
        """borrowed / returned / overdue, derived on every read."""
        if self.state is LoanState.RETURNED:
            return "returned"
        return "overdue" if self.is_overdue(now) else "borrowed"

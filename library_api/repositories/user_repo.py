from sqlalchemy import update

from library_api.models.user import User
from library_api.extensions import db


class UserRepo:
    @staticmethod
    def get_by_email(email: str):
        return User.query.filter_by(email=email).first()

    @staticmethod
    def get_by_id(user_id: int):
        return db.session.get(User, user_id)

    @staticmethod
    def add(user: User):
        db.session.add(user)
        db.session.flush()
        return user

    @staticmethod
    def save():
        db.session.flush()

    @staticmethod
    def lock_for_borrow(user_id: int) -> bool:
        """
        Takes the borrower's row lock for the rest of the transaction.
        A write is used instead of SELECT ... FOR UPDATE so SQLite serialises too.
        Returns False when the user does not exist.
        """
        result = db.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(loan_seq=User.loan_seq + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

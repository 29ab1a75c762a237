import pytest
from werkzeug.security import generate_password_hash

from library_api import create_app
from library_api.config import Config
from library_api.extensions import db
from library_api.models.book import Book
from library_api.models.user import Role, User
from library_api.services.auth_service import AuthService
from library_api.services.policy import Caller


class LibraryTestConfig(Config):
    TESTING = True
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30, "check_same_thread": False}}
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-bytes-for-hs256"
    AUTO_CREATE_TABLES = True
    TXN_MAX_ATTEMPTS = 5
    TXN_RETRY_BACKOFF = 0.01
    LOG_LEVEL = "WARNING"


@pytest.fixture
def app(tmp_path):
    # file database: the concurrency tests need real per-thread connections
    class _Config(LibraryTestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'library.db'}"

    app = create_app(_Config)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role=Role.BORROWER, name=None, password="password123"):
        counter["n"] += 1
        n = counter["n"]
        with app.app_context():
            user = User(
                name=name or f"User {n}",
                email=f"user{n}@example.com",
                password_hash=generate_password_hash(password),
                role=role.value,
            )
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make


@pytest.fixture
def make_book(app):
    counter = {"n": 0}

    def _make(quantity=1, title=None, author="Some Author"):
        counter["n"] += 1
        n = counter["n"]
        with app.app_context():
            book = Book(
                title=title or f"Book {n}",
                author=author,
                isbn=f"978000000{n:04d}",
                quantity=quantity,
                available=quantity,
            )
            db.session.add(book)
            db.session.commit()
            return book.id

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user_id):
        with app.app_context():
            token = AuthService.issue_token(db.session.get(User, user_id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


def borrower(user_id):
    return Caller(user_id=user_id, role=Role.BORROWER)


def librarian(user_id):
    return Caller(user_id=user_id, role=Role.LIBRARIAN)


def book_state(book_id):
    """(quantity, available, active loans) read fresh from the database."""
    from library_api.repositories.loan_repo import LoanRepo

    book = db.session.get(Book, book_id, populate_existing=True)
    return book.quantity, book.available, LoanRepo.count_active_for_book(book_id)

from flask import current_app
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from library_api.errors import Conflict, InvalidCredentials, UserNotFound, ValidationError
from library_api.models.user import Role, User
from library_api.repositories.user_repo import UserRepo
from library_api.services.unit_of_work import run_in_transaction

MIN_PASSWORD_LENGTH = 8


class AuthService:
    @staticmethod
    def register(name: str, email: str, password: str, role: str = Role.BORROWER.value):
        parsed_role = Role.parse(role)
        if parsed_role is None:
            raise ValidationError("Role must be librarian or borrower")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        def _work():
            if UserRepo.get_by_email(email):
                raise Conflict("Email already registered")
            return UserRepo.add(User(
                name=name,
                email=email,
                password_hash=generate_password_hash(password),
                role=parsed_role.value,
            ))

        try:
            user = run_in_transaction(_work, label="register")
        except IntegrityError:
            raise Conflict("Email already registered")
        current_app.logger.info(f"[auth] registered user={user.id} role={user.role}")
        return user

    @staticmethod
    def login(email: str, password: str):
        user = UserRepo.get_by_email(email)
        if not user or not check_password_hash(user.password_hash, password or ""):
            raise InvalidCredentials()

        return AuthService.issue_token(user), user

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "name": user.name}
        )

    @staticmethod
    def update_profile(user_id: int, name: str = None, email: str = None):
        """Changes name and/or email; the role is never touched here."""
        def _work():
            user = UserRepo.get_by_id(user_id)
            if user is None:
                raise UserNotFound()
            if email is not None and email != user.email:
                if UserRepo.get_by_email(email):
                    raise Conflict("Email already registered")
                user.email = email
            if name is not None:
                user.name = name
            UserRepo.save()
            return user

        try:
            user = run_in_transaction(_work, label="profile")
        except IntegrityError:
            raise Conflict("Email already registered")
        current_app.logger.info(f"[auth] profile updated user={user.id}")
        return user

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from library_api.errors import LibraryError, ValidationError
from library_api.models.user import Role
from library_api.services.borrow_service import BorrowService
from library_api.services.report_service import ReportService
from library_api.utils.decorators import current_caller, role_required
from library_api.utils.serializers import book_to_dict, loan_to_dict
from library_api.utils.validators import loan_status, optional_id, page_args, required_id

borrow_bp = Blueprint("borrow", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def _error(e: LibraryError):
    return jsonify(e.to_dict()), e.status_code


@borrow_bp.post("")
@jwt_required()
def borrow_book():
    try:
        book_id = required_id(_json_body(), "book_id")
        loan, book = BorrowService.borrow_book(current_caller(), book_id)
        return jsonify({
            "success": True,
            "message": "Borrowed successfully",
            "loan": loan_to_dict(loan),
            "book": book_to_dict(book),
        }), 201
    except LibraryError as e:
        return _error(e)


@borrow_bp.post("/return")
@jwt_required()
def return_book():
    try:
        data = _json_body()
        loan_id = optional_id(data, "loan_id")
        book_id = optional_id(data, "book_id") if loan_id is None else None
        if loan_id is None and book_id is None:
            raise ValidationError("loan_id or book_id is required")
        loan, book = BorrowService.return_book(current_caller(), loan_id=loan_id, book_id=book_id)
        return jsonify({
            "success": True,
            "message": "Returned successfully",
            "loan": loan_to_dict(loan),
            "book": book_to_dict(book),
        })
    except LibraryError as e:
        return _error(e)


@borrow_bp.get("/my-books")
@jwt_required()
def my_books():
    try:
        caller = current_caller()
        status = loan_status(request.args.get("status"))
        loans = ReportService.my_loans(caller.user_id, status)
        return jsonify({"success": True, "data": [loan_to_dict(x, with_book=True) for x in loans]})
    except LibraryError as e:
        return _error(e)


@borrow_bp.get("/all")
@role_required(Role.LIBRARIAN)
def all_loans():
    try:
        status = loan_status(request.args.get("status"))
        page, limit = page_args(
            request.args, current_app.config["PAGE_SIZE_DEFAULT"], current_app.config["PAGE_SIZE_MAX"]
        )
        loans, pagination = ReportService.all_loans(status, page, limit)
        return jsonify({
            "success": True,
            "data": [loan_to_dict(x, with_book=True, with_user=True) for x in loans],
            "pagination": pagination,
        })
    except LibraryError as e:
        return _error(e)


@borrow_bp.get("/stats")
@role_required(Role.LIBRARIAN)
def stats():
    return jsonify({"success": True, "data": ReportService.stats()})

from flask import Blueprint, request, jsonify, current_app

from library_api.errors import LibraryError, ValidationError
from library_api.models.user import Role
from library_api.services.book_service import BookService
from library_api.utils.decorators import role_required
from library_api.utils.serializers import book_to_dict
from library_api.utils.validators import MAX_DB_INT, page_args

book_bp = Blueprint("books", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


@book_bp.get("")
def list_books():
    try:
        page, limit = page_args(
            request.args, current_app.config["PAGE_SIZE_DEFAULT"], current_app.config["PAGE_SIZE_MAX"]
        )
        books, pagination = BookService.list_books(
            q=request.args.get("q") or request.args.get("search"),
            category=request.args.get("category"),
            page=page,
            limit=limit,
        )
        return jsonify({
            "success": True,
            "count": len(books),
            "data": [book_to_dict(b) for b in books],
            "pagination": pagination,
        })
    except LibraryError as e:
        return jsonify(e.to_dict()), e.status_code


@book_bp.get(f"/<int(max={MAX_DB_INT}):book_id>")
def get_book(book_id: int):
    try:
        b = BookService.get_book(book_id)
        return jsonify({"success": True, "data": book_to_dict(b)})
    except LibraryError as e:
        return jsonify(e.to_dict()), e.status_code


@book_bp.post("")
@role_required(Role.LIBRARIAN)
def create_book():
    try:
        b = BookService.create_book(_json_body())
        return jsonify({"success": True, "data": book_to_dict(b)}), 201
    except LibraryError as e:
        return jsonify(e.to_dict()), e.status_code


@book_bp.put(f"/<int(max={MAX_DB_INT}):book_id>")
@role_required(Role.LIBRARIAN)
def update_book(book_id: int):
    try:
        b = BookService.update_book(book_id, _json_body())
        return jsonify({"success": True, "data": book_to_dict(b)})
    except LibraryError as e:
        return jsonify(e.to_dict()), e.status_code


@book_bp.delete(f"/<int(max={MAX_DB_INT}):book_id>")
@role_required(Role.LIBRARIAN)
def delete_book(book_id: int):
    try:
        BookService.delete_book(book_id)
        return jsonify({"success": True, "message": "Book deleted"})
    except LibraryError as e:
        return jsonify(e.to_dict()), e.status_code

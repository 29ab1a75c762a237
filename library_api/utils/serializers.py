def _iso(value):
    return value.isoformat() if value is not None else None


def book_to_dict(b):
    if b is None:
        return None
    return {
        "id": b.id,
        "title": b.title,
        "author": b.author,
        "isbn": b.isbn,
        "description": b.description,
        "category": b.category,
        "published_year": b.published_year,
        "quantity": b.quantity,
        "available": b.available,
    }


def loan_to_dict(x, now=None, with_book=False, with_user=False):
    data = {
        "id": x.id,
        "user_id": x.user_id,
        "book_id": x.book_id,
        "borrowed_at": _iso(x.borrowed_at),
        "due_date": _iso(x.due_date),
        "returned_at": _iso(x.returned_at),
        "status": x.status(now),
    }
    if with_book:
        data["book"] = (
            {"id": x.book.id, "title": x.book.title, "author": x.book.author, "isbn": x.book.isbn}
            if x.book else None
        )
    if with_user:
        data["user"] = {"id": x.user.id, "name": x.user.name, "email": x.user.email} if x.user else None
    return data

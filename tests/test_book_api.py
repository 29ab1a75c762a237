import pytest

from library_api.models.user import Role


@pytest.fixture
def lib_headers(make_user, auth_headers):
    return auth_headers(make_user(role=Role.LIBRARIAN))


@pytest.fixture
def user_headers(make_user, auth_headers):
    return auth_headers(make_user())


def _create(client, headers, **overrides):
    payload = {"title": "Dune", "author": "Frank Herbert", "isbn": "9780441013593", "quantity": 3}
    payload.update(overrides)
    return client.post("/books", json=payload, headers=headers)


def test_create_sets_available_to_quantity(client, lib_headers):
    r = _create(client, lib_headers)
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert (data["quantity"], data["available"]) == (3, 3)


def test_borrower_cannot_write_catalog(client, user_headers):
    assert _create(client, user_headers).status_code == 403


def test_create_validation(client, lib_headers):
    assert _create(client, lib_headers, title="  ").status_code == 400
    assert _create(client, lib_headers, quantity=0).status_code == 400
    assert _create(client, lib_headers, available=1).status_code == 400


def test_duplicate_isbn(client, lib_headers):
    _create(client, lib_headers)
    r = _create(client, lib_headers, title="Other")
    assert r.status_code == 409


def test_list_search_and_get(client, lib_headers):
    book_id = _create(client, lib_headers).get_json()["data"]["id"]
    _create(client, lib_headers, title="Emma", author="Jane Austen", isbn="9780141439587")

    r = client.get("/books?q=herbert")
    assert [b["id"] for b in r.get_json()["data"]] == [book_id]
    assert len(client.get("/books").get_json()["data"]) == 2

    assert client.get(f"/books/{book_id}").get_json()["data"]["title"] == "Dune"
    assert client.get("/books/999").status_code == 404


def test_quantity_edit_moves_available_by_delta(client, lib_headers, user_headers):
    book_id = _create(client, lib_headers).get_json()["data"]["id"]
    client.post("/borrow", json={"bookId": book_id}, headers=user_headers)

    r = client.put(f"/books/{book_id}", json={"quantity": 5}, headers=lib_headers)
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert (data["quantity"], data["available"]) == (5, 4)

    r = client.put(f"/books/{book_id}", json={"quantity": 1}, headers=lib_headers)
    data = r.get_json()["data"]
    assert (data["quantity"], data["available"]) == (1, 0)

    r = client.put(f"/books/{book_id}", json={"quantity": 0}, headers=lib_headers)
    assert r.status_code == 409


def test_update_fields_and_reject_available(client, lib_headers):
    book_id = _create(client, lib_headers).get_json()["data"]["id"]

    r = client.put(f"/books/{book_id}", json={"title": "Dune Messiah"}, headers=lib_headers)
    assert r.get_json()["data"]["title"] == "Dune Messiah"

    r = client.put(f"/books/{book_id}", json={"available": 1}, headers=lib_headers)
    assert r.status_code == 400

    assert client.put("/books/999", json={"title": "x"}, headers=lib_headers).status_code == 404


def test_delete_only_when_no_copies_on_loan(client, lib_headers, user_headers):
    book_id = _create(client, lib_headers).get_json()["data"]["id"]
    loan_id = client.post("/borrow", json={"bookId": book_id}, headers=user_headers).get_json()["loan"]["id"]

    assert client.delete(f"/books/{book_id}", headers=lib_headers).status_code == 409

    client.post("/borrow/return", json={"loanId": loan_id}, headers=user_headers)
    assert client.delete(f"/books/{book_id}", headers=lib_headers).status_code == 200
    assert client.get(f"/books/{book_id}").status_code == 404


def test_descriptive_fields(client, lib_headers):
    r = _create(client, lib_headers, description="Desert planet", category="Fiction", publishedYear=1965)
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert (data["description"], data["category"], data["published_year"]) == ("Desert planet", "Fiction", 1965)

    r = client.put(
        f"/books/{data['id']}", json={"category": "Science", "published_year": 1966}, headers=lib_headers
    )
    assert r.status_code == 200
    assert (r.get_json()["data"]["category"], r.get_json()["data"]["published_year"]) == ("Science", 1966)

    plain = _create(client, lib_headers, isbn="9780141439587").get_json()["data"]
    assert (plain["category"], plain["description"], plain["published_year"]) == ("Other", None, None)


@pytest.mark.parametrize("overrides", [
    {"category": "Poetry"},
    {"publishedYear": 999},
    {"publishedYear": 3000},
    {"publishedYear": "soon"},
    {"description": 5},
    {"description": "x" * 1001},
])
def test_descriptive_field_validation(client, lib_headers, overrides):
    r = _create(client, lib_headers, **overrides)
    assert r.status_code == 400
    assert r.get_json()["error"] == "validation_error"


def test_category_filter_and_pagination(client, lib_headers):
    for n in range(5):
        _create(client, lib_headers, title=f"Novel {n}", isbn=f"97800000000{n}", category="Fiction")
    _create(client, lib_headers, title="Cosmos", author="Carl Sagan", isbn="9780345539434", category="Science")

    r = client.get("/books?category=Fiction&page=2&limit=2")
    body = r.get_json()
    assert r.status_code == 200
    assert body["count"] == 2
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}
    assert {b["category"] for b in body["data"]} == {"Fiction"}

    r = client.get("/books?category=Fiction&page=3&limit=2")
    assert r.get_json()["count"] == 1

    r = client.get("/books?search=sagan")
    assert [b["title"] for b in r.get_json()["data"]] == ["Cosmos"]

    assert client.get("/books?category=Poetry").status_code == 400
    assert client.get("/books?page=0").status_code == 400
    assert client.get("/books?limit=1000").get_json()["pagination"]["limit"] == 100


def test_out_of_range_ids_and_quantities(client, lib_headers):
    assert client.get("/books/100000000000000000000").status_code == 404
    assert client.put("/books/100000000000000000000", json={"title": "x"}, headers=lib_headers).status_code == 404
    assert _create(client, lib_headers, quantity=10 ** 20).status_code == 400

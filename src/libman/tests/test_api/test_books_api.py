import pytest
from httpx import AsyncClient

from libman.exceptions.base import StoreError, StoreTimeoutError
from libman.models.book import Book
from libman.repositories.book_repository import BookRepository

BOOK_BODY = {
    "title": "Designing Data-Intensive Applications",
    "authors": ["Martin Kleppmann"],
    "year": 2017,
    "publisher": "O'Reilly",
    "language": "English",
    "pages": 616,
}


@pytest.mark.asyncio
class TestCreateBook:
    """
    POST /v1/books

    Fixtures used:
      - client: httpx AsyncClient over ASGITransport, app bound to the test store.
    """

    async def test_create_returns_201_with_location(self, client: AsyncClient):
        resp = await client.post("/v1/books", json=BOOK_BODY)

        assert resp.status_code == 201
        book = resp.json()["book"]
        assert resp.headers["Location"] == f"/v1/books/{book['id']}"
        assert book["version"] == 1
        assert book["authors"] == ["Martin Kleppmann"]
        assert "created_at" not in book

    async def test_create_is_committed(self, client: AsyncClient):
        created = (await client.post("/v1/books", json=BOOK_BODY)).json()["book"]

        resp = await client.get(f"/v1/books/{created['id']}")

        assert resp.status_code == 200
        assert resp.json()["book"] == created

    async def test_create_reports_all_validation_errors(self, client: AsyncClient):
        resp = await client.post("/v1/books", json={"title": "", "authors": ["A", "A"], "year": 3000})

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "invalid_input"
        assert body["errors"] == {
            "title": "must be provided",
            "authors": "must not contain duplicate values",
            "year": "must not be in the future",
            "publisher": "must be provided",
            "language": "must be provided",
            "pages": "must be provided",
        }

    async def test_create_rejects_wrong_json_types(self, client: AsyncClient):
        resp = await client.post("/v1/books", json={**BOOK_BODY, "pages": "many"})

        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_input"
        assert "pages" in resp.json()["errors"]

    async def test_create_rejects_unknown_keys(self, client: AsyncClient):
        resp = await client.post("/v1/books", json={**BOOK_BODY, "rating": 5})

        assert resp.status_code == 422
        assert "rating" in resp.json()["errors"]

    async def test_request_id_header_is_echoed(self, client: AsyncClient):
        resp = await client.post("/v1/books", json=BOOK_BODY)

        assert resp.headers.get("X-Request-ID")


@pytest.mark.asyncio
class TestShowBook:
    async def test_show_existing(self, client: AsyncClient, created_book: Book):
        resp = await client.get(f"/v1/books/{created_book.id}")

        assert resp.status_code == 200
        assert resp.json()["book"]["title"] == created_book.title

    @pytest.mark.parametrize("raw_id", ["0", "-3", "abc", "999999", "9223372036854775808", "1_000"])
    async def test_show_invalid_or_missing_is_404(self, client: AsyncClient, raw_id: str):
        resp = await client.get(f"/v1/books/{raw_id}")

        assert resp.status_code == 404
        assert resp.json() == {"detail": "the requested resource could not be found", "code": "not_found"}


@pytest.mark.asyncio
class TestUpdateBook:
    """
    PATCH /v1/books/{id}

    Fixtures used:
      - created_book: committed book at version 1.
      - client: HTTP client bound to the same store.
    """

    async def test_partial_update(self, client: AsyncClient, created_book: Book):
        resp = await client.patch(f"/v1/books/{created_book.id}", json={"pages": 999})

        assert resp.status_code == 200
        book = resp.json()["book"]
        assert book["pages"] == 999
        assert book["title"] == created_book.title
        assert book["version"] == 2

    async def test_update_is_committed(self, client: AsyncClient, created_book: Book):
        await client.patch(f"/v1/books/{created_book.id}", json={"title": "Renamed"})

        resp = await client.get(f"/v1/books/{created_book.id}")

        assert resp.json()["book"]["title"] == "Renamed"
        assert resp.json()["book"]["version"] == 2

    async def test_patch_result_is_validated(self, client: AsyncClient, created_book: Book):
        resp = await client.patch(f"/v1/books/{created_book.id}", json={"authors": None, "year": -1})

        assert resp.status_code == 422
        assert resp.json()["errors"] == {"authors": "must be provided", "year": "must be greater than 0"}

    @pytest.mark.parametrize("field", ["id", "version", "created_at"])
    async def test_store_owned_fields_are_rejected(self, client: AsyncClient, created_book: Book, field: str):
        resp = await client.patch(f"/v1/books/{created_book.id}", json={field: 5})

        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_field"
        assert resp.json()["fields"] == [field]

    async def test_expected_version_mismatch_is_409(self, client: AsyncClient, created_book: Book):
        resp = await client.patch(
            f"/v1/books/{created_book.id}", json={"pages": 1}, headers={"X-Expected-Version": "7"}
        )

        assert resp.status_code == 409
        assert resp.json()["code"] == "edit_conflict"

    async def test_expected_version_match_is_accepted(self, client: AsyncClient, created_book: Book):
        resp = await client.patch(
            f"/v1/books/{created_book.id}", json={"pages": 1}, headers={"X-Expected-Version": "1"}
        )

        assert resp.status_code == 200

    async def test_sequential_patches_each_bump_version(self, client: AsyncClient, created_book: Book):
        for expected in (2, 3):
            resp = await client.patch(f"/v1/books/{created_book.id}", json={"pages": expected * 100})
            assert resp.json()["book"]["version"] == expected

    async def test_patch_missing_is_404(self, client: AsyncClient):
        resp = await client.patch("/v1/books/123456", json={"pages": 1})

        assert resp.status_code == 404


@pytest.mark.asyncio
class TestDeleteBook:
    async def test_delete(self, client: AsyncClient, created_book: Book):
        resp = await client.delete(f"/v1/books/{created_book.id}")

        assert resp.status_code == 200
        assert resp.json() == {"message": "book successfully deleted"}
        assert (await client.get(f"/v1/books/{created_book.id}")).status_code == 404

    async def test_delete_twice_is_404(self, client: AsyncClient, created_book: Book):
        await client.delete(f"/v1/books/{created_book.id}")

        resp = await client.delete(f"/v1/books/{created_book.id}")

        assert resp.status_code == 404


@pytest.mark.asyncio
class TestListBooks:
    async def test_first_page(self, client: AsyncClient, multiple_books: list[Book]):
        resp = await client.get("/v1/books", params={"page": 1, "page_size": 10})

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["books"]) == 10
        assert body["metadata"] == {
            "current_page": 1,
            "page_size": 10,
            "first_page": 1,
            "last_page": 3,
            "total_records": 25,
        }

    async def test_empty_list_reports_zero_total(self, client: AsyncClient):
        resp = await client.get("/v1/books")

        assert resp.status_code == 200
        assert resp.json() == {
            "books": [],
            "metadata": {"current_page": 1, "page_size": 10, "first_page": 1, "last_page": 0, "total_records": 0},
        }

    async def test_page_past_the_end_keeps_total(self, client: AsyncClient, multiple_books: list[Book]):
        resp = await client.get("/v1/books", params={"page": 9, "page_size": 10})

        assert resp.json()["books"] == []
        assert resp.json()["metadata"]["total_records"] == 25
        assert resp.json()["metadata"]["last_page"] == 3

    async def test_filters_and_sort(self, client: AsyncClient, create_book):
        older = await create_book(title="Go Programming", authors=["Pike", "Kernighan"], year=2015)
        newer = await create_book(title="Learning Go", authors=["Kernighan"], year=2021)
        await create_book(title="Rust in Action", authors=["McNamara"], year=2021)

        resp = await client.get("/v1/books", params={"title": "go", "authors": "Kernighan", "sort": "-year"})

        assert [b["id"] for b in resp.json()["books"]] == [newer.id, older.id]

    @pytest.mark.parametrize(
        "params, field",
        [
            ({"sort": "publisher"}, "sort"),
            ({"page": "x"}, "page"),
            ({"page": "0"}, "page"),
            ({"page_size": "101"}, "page_size"),
            ({"page": str(10**19)}, "page"),
            ({"page": "20000000"}, "page"),
        ],
    )
    async def test_invalid_query_is_422(self, client: AsyncClient, params: dict, field: str):
        resp = await client.get("/v1/books", params=params)

        assert resp.status_code == 422
        assert field in resp.json()["errors"]


@pytest.mark.asyncio
class TestStoreFailures:
    async def test_store_timeout_is_504(self, client: AsyncClient, created_book: Book, monkeypatch):
        async def timed_out_get(self, book_id, *, timeout=None):
            raise StoreTimeoutError()

        monkeypatch.setattr(BookRepository, "get", timed_out_get)

        resp = await client.get(f"/v1/books/{created_book.id}")

        assert resp.status_code == 504
        assert resp.json()["code"] == "store_timeout"

    async def test_store_error_is_500_without_internals(self, client: AsyncClient, monkeypatch, caplog):
        async def broken_get_all(self, *args, **kwargs):
            raise StoreError("failed to operate on Book", constraint="secret_constraint")

        monkeypatch.setattr(BookRepository, "get_all", broken_get_all)

        resp = await client.get("/v1/books")

        assert resp.status_code == 500
        assert resp.json() == {"detail": "failed to operate on Book", "code": "store_error"}
        assert any(r.levelname == "ERROR" and r.name == "libman.api.v1.error_handlers" for r in caplog.records)


@pytest.mark.asyncio
async def test_healthcheck(client: AsyncClient):
    resp = await client.get("/v1/healthcheck")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "available"
    assert body["environment"] == "testing"
    assert "version" in body

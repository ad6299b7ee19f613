from io import BytesIO

from db.models import Author, Post
from services.import_resources import register_resource
from tests.factories import AuthorFactory


AUTHORS = b"Name,Last name,Birthday\nJohn,Doe,1986-05-01\nJane,Roe,1988-11-16\n"


def _upload(client, name, content, filename="import.csv", **form):
    data = {"file": (BytesIO(content), filename), **form}
    return client.post(f"/admin/{name}/do_import", data=data,
                       content_type="multipart/form-data", follow_redirects=True)


def test_admin_index_lists_resources(client):
    response = client.get("/admin/")
    assert response.status_code == 200
    assert b"Import Authors" in response.data
    assert b"Import Posts" in response.data


def test_import_page_has_upload_form(client):
    response = client.get("/admin/authors/import")
    assert response.status_code == 200
    assert b'id="new_import"' in response.data
    assert b'name="file"' in response.data


def test_unknown_resource_is_404(client):
    assert client.get("/admin/widgets/import").status_code == 404


def test_successful_import(client, count):
    """Uploading a clean file flashes the success message."""
    response = _upload(client, "authors", AUTHORS)

    assert response.status_code == 200
    assert b"Successfully imported 2 authors" in response.data
    assert count(Author) == 2


def test_failed_rows_are_flashed(client, session, count):
    AuthorFactory(name="Johnny", last_name="Doe")

    response = _upload(client, "authors", AUTHORS)

    assert b"Successfully imported 1 author<" in response.data
    assert b"Failed to import 1 author: Last name has already been taken - Doe" in response.data
    assert count(Author) == 2


def test_no_file_selected(client):
    response = client.post("/admin/authors/do_import", data={},
                           content_type="multipart/form-data", follow_redirects=True)
    assert b"Please, select file to import" in response.data


def test_empty_file(client):
    response = _upload(client, "authors", b"")
    assert b"import empty file" in response.data


def test_malformed_file(client, count):
    response = _upload(client, "authors", b'Name,Last name\n"John,Doe\n')
    assert b"Please, upload a valid CSV file" in response.data
    assert count(Author) == 0


def test_storage_error_is_flashed(client, count):
    response = _upload(client, "authors", b"Name,Last name\nJohn,Doe\nJohn,Roe\n")
    assert b"Error: " in response.data
    assert count(Author) == 0


def test_declared_encoding(client, fetch_all):
    raw = "Name,Last name\nИван,Петров\n".encode("windows-1251")
    _upload(client, "authors", raw, encoding="windows-1251")
    assert fetch_all(Author)[0].name == "Иван"


def test_posts_are_attached_to_first_author(client, session, fetch_all):
    author = AuthorFactory()

    response = _upload(client, "posts", b"Title,Body\nHello,World\n")

    assert b"Successfully imported 1 post" in response.data
    assert fetch_all(Post)[0].author_id == author.id


def test_batch_transaction_flash_counts_only_failed_rows(client, session, count):
    """Rows rolled back with their batch are not listed as failed imports."""
    register_resource("strict_authors", Author, singular="author", batch_transaction=True)
    AuthorFactory(name="Johnny", last_name="Doe")

    response = _upload(client, "strict_authors", b"Name,Last name\nJohn,Doe\nJane,Roe\n")

    assert b"Failed to import 1 author: Last name has already been taken - Doe" in response.data
    assert b"Rolled back 1 author together with their failed batch" in response.data
    assert count(Author) == 1

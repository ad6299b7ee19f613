import pytest

from db import init_db, dispose_db, session_scope
from services.import_resources import clear_resources
from tests.factories import AuthorFactory, PostFactory


@pytest.fixture
def db_url(tmp_path):
    """SQLite file in a per-test temporary directory."""
    return f"sqlite:///{tmp_path / 'test.sqlite'}"


@pytest.fixture
def database(db_url):
    """Initialise a fresh schema and tear the engine down afterwards."""
    init_db(db_url)
    yield
    dispose_db()


@pytest.fixture
def session(database):
    """Session shared with the factories."""
    with session_scope() as s:
        AuthorFactory._meta.sqlalchemy_session = s
        PostFactory._meta.sqlalchemy_session = s
        yield s
    AuthorFactory._meta.sqlalchemy_session = None
    PostFactory._meta.sqlalchemy_session = None


@pytest.fixture
def count(database):
    """Return a function counting committed rows of a model."""
    def _count(model):
        with session_scope() as s:
            return s.query(model).count()
    return _count


@pytest.fixture
def fetch_all(database):
    """Return a function loading every committed row of a model."""
    def _fetch(model):
        with session_scope() as s:
            return s.query(model).order_by(model.id).all()
    return _fetch


@pytest.fixture
def app(db_url):
    """Flask app wired to the temporary database."""
    from main import create_app

    clear_resources()
    flask_app = create_app(db_url)
    flask_app.config.update(TESTING=True)
    yield flask_app
    clear_resources()
    dispose_db()


@pytest.fixture
def client(app):
    """Return a Flask test client."""
    return app.test_client()

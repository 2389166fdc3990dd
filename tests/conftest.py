import pytest

import store
from app import app as flask_app
from init_db import init_db


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "spreebreak.db")


@pytest.fixture
def app(db_path):
    flask_app.config.update(TESTING=True, DB_PATH=db_path)
    init_db(db_path)
    with flask_app.app_context():
        yield flask_app


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def team(app):
    """Two members in team `red`, one in team `blue`."""
    store.join_team(1, "red", username="anna", first_name="Anna", last_name="Berg")
    store.join_team(2, "red", first_name="Ben")
    store.join_team(3, "blue", username="cara", first_name="Cara", last_name="Diaz")
    return "red"

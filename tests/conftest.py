from datetime import timedelta
from pathlib import Path
import sys
import os

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Safety default for any module-level app creation during test imports.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from pollhub import create_app
from pollhub.extensions import db
from pollhub.models import Competitor, Poll, User, Vote
from pollhub.utils import utcnow


@pytest.fixture()
def app(tmp_path: Path):
    db_file = tmp_path / "test.sqlite3"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_file}",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
        }
    )

    with app.app_context():
        driver = db.engine.url.drivername
        if driver != "sqlite":
            raise RuntimeError(
                f"Test database must be SQLite, got '{driver}'. Refusing to run destructive test setup."
            )
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db_session(app):
    with app.app_context():
        yield db.session


@pytest.fixture()
def admin_user(db_session):
    user = User(
        username="admin1",
        email="admin1@example.com",
        password_hash="hashed-password",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def auth_client(client, admin_user):
    with client.session_transaction() as session:
        session["_user_id"] = str(admin_user.id)
        session["_fresh"] = True
    return client


@pytest.fixture()
def make_poll(db_session):
    def _make_poll(
        title="Governor Race",
        competitors=("Alice", "Bob", "Carol"),
        expires_in=timedelta(days=1),
        **fields,
    ):
        fields.setdefault("category", "Governor")
        fields.setdefault("region", "Nairobi")
        fields.setdefault("county", "Nairobi")
        expires_at = utcnow() + expires_in if expires_in is not None else None

        poll = Poll(title=title, voting_expires_at=expires_at, **fields)
        db_session.add(poll)
        db_session.flush()

        for name in competitors:
            db_session.add(Competitor(poll_id=poll.id, name=name))
        db_session.commit()
        return poll

    return _make_poll


@pytest.fixture()
def add_votes(db_session):
    """Insert ballots directly, keeping the poll counter in step."""

    def _add_votes(poll, competitor, count, prefix=None):
        prefix = prefix or f"c{competitor.id}"
        for index in range(count):
            db_session.add(
                Vote(
                    poll_id=poll.id,
                    competitor_id=competitor.id,
                    voter_id=f"{prefix}-{index}",
                )
            )
        poll.total_votes = (poll.total_votes or 0) + count
        db_session.commit()

    return _add_votes

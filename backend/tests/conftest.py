import os
import sys
import pytest

# Ensure the backend root (containing the `truthgame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from truthgame import create_app, db, socketio


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False


class FakeScheduler:
    """Virtual time for RoundClock: spawned workers wait until run explicitly."""

    def __init__(self):
        self.t = 0.0
        self.tasks = []

    def now(self):
        return self.t

    def sleep(self, seconds):
        self.t += seconds

    def spawn(self, target, *args):
        self.tasks.append((target, args))

    def advance(self, seconds):
        self.t += seconds

    def run_task(self, index):
        target, args = self.tasks.pop(index)
        target(*args)

    def run_pending(self):
        tasks, self.tasks = self.tasks, []
        for target, args in tasks:
            target(*args)


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture(autouse=True)
def _clear_controllers():
    yield
    from truthgame.services.games import sessions
    for code in list(sessions._controllers):
        sessions.release_controller(code)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import truthgame.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def seeded(flask_app):
    from truthgame.models import Claim
    claims = [
        Claim(text='Octopuses have three hearts.', answer='TRUE', difficulty='medium'),
        Claim(text='Goldfish only remember three seconds.', answer='FALSE', difficulty='medium'),
        Claim(text='Vitamin C prevents colds.', answer='MIXED', difficulty='medium'),
    ]
    db.session.add_all(claims)
    db.session.commit()
    return claims


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass

"""Functional test bootstrap.

Every test gets a fresh file-backed SQLite engine with the packaged migrations
applied and a dict-backed form repository, so no MongoDB or PostgreSQL
server is needed. HTTP tests reach the same objects through FastAPI
dependency overrides.
"""

from __future__ import annotations

import os
from typing import Callable, Dict, Iterator

import pytest

# Configure the process before any formdesk module reads configuration
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET"] = "functional-test-secret"
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"
os.environ["PRIVILEGED_ROLE"] = "admin"
os.environ["DEFAULT_PAGE_SIZE"] = "10"
os.environ["MAX_PAGE_SIZE"] = "100"

from formdesk.config import get_config  # noqa: E402

get_config.cache_clear()

from formdesk.db.base import build_engine  # noqa: E402
from formdesk.db.migrations_runner import apply_migrations  # noqa: E402
from formdesk.logic import events  # noqa: E402
from formdesk.logic.auth_provider import JwtAuthenticationProvider  # noqa: E402
from formdesk.logic.form_lifecycle import FormLifecycleManager  # noqa: E402
from formdesk.logic.keyed_lock import KeyedLock  # noqa: E402
from formdesk.logic.repository_forms import InMemoryFormRepository  # noqa: E402
from formdesk.logic.repository_responses import SqlResponseRepository  # noqa: E402
from formdesk.logic.repository_users import SqlUserDirectory  # noqa: E402
from formdesk.logic.response_submission import ResponseSubmissionEngine  # noqa: E402
from support import ADMIN_ID, LEARNER_ID, OTHER_ADMIN_ID, OTHER_LEARNER_ID, survey_definition  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_config_and_events() -> Iterator[None]:
    get_config.cache_clear()
    events.get_buffered_events(clear=True)
    yield
    events.get_buffered_events(clear=True)
    get_config.cache_clear()


@pytest.fixture
def engine(tmp_path):
    # File-backed so concurrent submissions each get their own connection
    eng = build_engine(f"sqlite+pysqlite:///{tmp_path / 'formdesk.db'}")
    apply_migrations(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def form_repo() -> InMemoryFormRepository:
    return InMemoryFormRepository()


@pytest.fixture
def response_repo(engine) -> SqlResponseRepository:
    return SqlResponseRepository(engine)


@pytest.fixture
def users(engine) -> SqlUserDirectory:
    directory = SqlUserDirectory(engine)
    directory.create_user("ada@example.com", "Ada Admin", "admin", user_id=ADMIN_ID)
    directory.create_user("otto@example.com", "Otto Admin", "admin", user_id=OTHER_ADMIN_ID)
    directory.create_user("lee@example.com", "Lee Learner", "learner", user_id=LEARNER_ID)
    directory.create_user("lou@example.com", "Lou Learner", "learner", user_id=OTHER_LEARNER_ID)
    return directory


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def manager(form_repo, response_repo, users, locks) -> FormLifecycleManager:
    return FormLifecycleManager(form_repo, response_repo, users, locks)


@pytest.fixture
def submissions(form_repo, response_repo, users, locks) -> ResponseSubmissionEngine:
    return ResponseSubmissionEngine(form_repo, response_repo, users, locks)


@pytest.fixture
def published_form(manager):
    form = manager.create(survey_definition(), ADMIN_ID)
    manager.publish(form.form_id, ADMIN_ID)
    return manager.get(form.form_id)


@pytest.fixture
def auth() -> JwtAuthenticationProvider:
    return JwtAuthenticationProvider()


@pytest.fixture
def bearer(auth) -> Callable[[str, str], Dict[str, str]]:
    def _headers(user_id: str, role: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {auth.issue_token(user_id, role)}"}

    return _headers


@pytest.fixture
def app(form_repo, response_repo, users, mocker):
    from formdesk.main import create_app
    from formdesk.routes import deps

    application = create_app()
    application.dependency_overrides[deps.get_form_repository] = lambda: form_repo
    application.dependency_overrides[deps.get_response_repository] = lambda: response_repo
    application.dependency_overrides[deps.get_user_directory] = lambda: users
    mocker.patch("formdesk.main.ping", return_value=True)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    # Not used as a context manager: startup migrations stay off
    return TestClient(app)

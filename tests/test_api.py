import pytest
from fakes import FAST_TIMINGS, FakePage, FakeSessionFactory, login_page
from fastapi.testclient import TestClient

from hatter.automate.executor import CommandExecutor
from hatter.automate.scraper import FormScraper
from hatter.main import app
from hatter.routers import forms, runs


@pytest.fixture(name="page")
def page_fixture():
    return login_page()


@pytest.fixture(name="client")
def client_fixture(page: FakePage):
    sessions = FakeSessionFactory(page)
    app.dependency_overrides[runs.get_executor] = lambda: CommandExecutor(
        session_factory=sessions, timings=FAST_TIMINGS
    )
    app.dependency_overrides[forms.get_form_scraper] = lambda: FormScraper(
        session_factory=sessions, timings=FAST_TIMINGS
    )
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "hatter engine is running"}


@pytest.mark.parametrize("body", [{}, {"commands": []}, {"commands": "navigate"}])
def test_run_test_rejects_missing_commands(client: TestClient, body):
    response = client.post("/api/run-test", json=body)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "No commands provided"}


def test_run_test_success(client: TestClient):
    response = client.post(
        "/api/run-test",
        json={
            "testName": "Login",
            "testDescription": "Fills the login form",
            "commands": [
                {"action": "navigate", "url": "https://example.com/login"},
                {"action": "type", "selector": "#email", "text": "user@example.com"},
            ],
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert "error" not in data
    assert data["screenshots"] == []
    assert data["executionTime"] > 0
    assert data["script"].startswith("# Login\n# Fills the login form\n")
    assert "async def run_test(page):" in data["script"]


def test_run_test_failure_is_still_a_200(client: TestClient):
    response = client.post(
        "/api/run-test",
        json={"commands": [{"action": "click", "selector": "#missing"}]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["error"].startswith("Step 1 (click) failed:")
    assert len(data["screenshots"]) == 1
    screenshot = data["screenshots"][0]
    assert screenshot["type"] == "failure"
    assert set(screenshot) == {"filename", "data", "takenAt", "type"}


def test_generate_script(client: TestClient, page: FakePage):
    response = client.post(
        "/api/generate-script",
        json={"commands": [{"action": "navigate", "url": "https://example.com"}]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert "await page.goto('https://example.com'" in data["script"]
    # compiling never drives the browser
    assert page.actions == []


def test_generate_script_rejects_empty_commands(client: TestClient):
    response = client.post("/api/generate-script", json={"commands": []})
    assert response.status_code == 400


def test_scrape_form_requires_url(client: TestClient):
    response = client.post("/api/scrape-form", json={})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "No URL provided"}


def test_scrape_form(client: TestClient, page: FakePage):
    page.form_fields = [
        {
            "tagName": "input",
            "type": "email",
            "typeAttribute": "email",
            "id": "email",
            "cssId": "email",
            "required": True,
            "nthOfType": 1,
            "forLabelText": "Email",
        }
    ]
    response = client.post("/api/scrape-form", json={"url": "https://example.com/login"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["totalFields"] == 1
    assert data["fields"][0] == {
        "tagName": "input",
        "type": "email",
        "id": "email",
        "required": True,
        "selector": "#email",
        "label": "Email",
    }


def test_scrape_form_load_failure(client: TestClient, page: FakePage):
    page.goto_error = "net::ERR_NAME_NOT_RESOLVED"
    response = client.post("/api/scrape-form", json={"url": "https://nope.invalid"})
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to scrape https://nope.invalid: net::ERR_NAME_NOT_RESOLVED",
    }

"""Pytest fixtures for Figma connector tests."""

import httpx
import pytest

from figma_connector.config import FigmaOptions

IMAGE_URL = "https://img.example/x.png"


class FakeFigma:
    """In-memory stand-in for the Figma web backend.

    Serves the login endpoint, the three search endpoints and thumbnail
    redirects. Tests tweak the attributes to script failures.
    """

    def __init__(self):
        self.token = "tok123"
        self.login_cookies: list[str] | None = None
        self.login_calls = 0
        self.results: dict[str, list[dict]] = {"fig_files": [], "folders": [], "teams": []}
        self.search_status: dict[str, int] = {}
        self.thumbnail_status = 302
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/session/login":
            self.login_calls += 1
            cookies = self.login_cookies
            if cookies is None:
                cookies = [f"figma.st={self.token}; Path=/; HttpOnly", "other=1; Path=/"]
            return httpx.Response(
                200,
                headers=[("set-cookie", c) for c in cookies],
                json={"meta": {}},
            )

        if path.startswith("/api/search/"):
            kind = path.rsplit("/", 1)[-1]
            status = self.search_status.get(kind, 200)
            if status != 200:
                return httpx.Response(status, text="nope")
            return httpx.Response(200, json={"meta": {"results": self.results[kind]}})

        if path.startswith("/thumbnails/"):
            if self.thumbnail_status == 302:
                return httpx.Response(302, headers={"Location": IMAGE_URL})
            return httpx.Response(self.thumbnail_status, content=b"\x89PNG")

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def search_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/api/search/")]


def make_file(name: str = "Doc", url: str = "https://fig.example/f/2", handle: str = "alice") -> dict:
    return {
        "creator": {"handle": handle},
        "name": name,
        "thumbnail_url": f"https://www.figma.com/thumbnails/{name}",
        "url": url,
    }


@pytest.fixture
def figma() -> FakeFigma:
    return FakeFigma()


@pytest.fixture
def options() -> FigmaOptions:
    return FigmaOptions(organization=42, user="alice@example.com", password="hunter2")

"""Shared fixtures: a fake website served through httpx.MockTransport."""

import httpx
import pytest

from exam_crawler.tools.pdf_tool import ParsedDocument


class FakeSite:
    """Maps absolute URLs to responses and records every request."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requested: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        return route

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def pages_fetched(self) -> list[str]:
        return [u for u in self.requested if not u.endswith("robots.txt")]


class FakePdfBackend:
    """Returns canned text instead of parsing bytes."""

    def __init__(self, text: str = "", page_count: int = 1, success: bool = True):
        self.text = text
        self.page_count = page_count
        self.success = success
        self.calls = 0

    def parse(self, data: bytes) -> ParsedDocument:
        self.calls += 1
        if not self.success:
            return ParsedDocument(success=False, error="broken document")
        return ParsedDocument(success=True, text=self.text, page_count=self.page_count)


def html_page(*anchors: str, title: str = "Board") -> httpx.Response:
    body = "".join(anchors)
    return httpx.Response(
        200, html=f"<html><head><title>{title}</title></head><body>{body}</body></html>"
    )


EXAM_TEXT = """2023학년도 6월 모의평가 고3 수학 영역
※ 문제지에 성명과 수험번호를 정확히 기입하시오. 답안지에는 반드시 컴퓨터용 사인펜을 사용하시오.

1. 다음 중 소수인 것을 고르시오.
① 4 ② 6 ③ 7 ④ 9
정답: ③

2. 삼각형의 내각의 합은 몇 도인지 쓰시오.
정답: 180
"""


@pytest.fixture
def fake_site():
    def build(routes: dict) -> FakeSite:
        return FakeSite(routes)
    return build


@pytest.fixture
def sleeps(monkeypatch):
    """Record crawl delays instead of sleeping."""
    calls: list[float] = []
    monkeypatch.setattr("exam_crawler.agent.crawl_agent.time.sleep", calls.append)
    return calls

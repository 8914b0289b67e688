"""Tests for page fetching and link extraction."""

from urllib.parse import quote

import httpx

from exam_crawler.config.loader import FetchSettings
from exam_crawler.tools.download_tool import download_tool
from exam_crawler.tools.fetch_tool import (
    extract_links,
    extract_links_with_pattern,
    extract_links_with_selector,
    fetch_tool,
    file_extension,
    is_same_domain,
    resolve_url,
)

from conftest import html_page

BASE = "https://site.test/board/list.html"


class TestResolveUrl:
    def test_relative_links_become_absolute(self):
        assert resolve_url(BASE, "view.html?id=3") == "https://site.test/board/view.html?id=3"
        assert resolve_url(BASE, "../files/a.pdf") == "https://site.test/files/a.pdf"
        assert resolve_url(BASE, "/root") == "https://site.test/root"
        assert resolve_url(BASE, "//cdn.test/x") == "https://cdn.test/x"

    def test_resolution_is_idempotent(self):
        first = resolve_url(BASE, "../a/b.html")
        assert first == resolve_url(BASE, "../a/b.html")
        assert resolve_url(BASE, first) == first

    def test_skipped_schemes(self):
        for href in ("javascript:void(0)", "JavaScript:go()", "mailto:a@b.test", "tel:0101234", " tel:1"):
            assert resolve_url(BASE, href) is None

    def test_fragment_is_dropped(self):
        assert resolve_url(BASE, "#top") == BASE
        assert resolve_url(BASE, "page.html#a") == "https://site.test/board/page.html"

    def test_non_http_and_empty(self):
        assert resolve_url(BASE, "ftp://site.test/a") is None
        assert resolve_url(BASE, "") is None


class TestExtractLinks:
    def test_links_files_and_title_in_one_pass(self):
        encoded = quote("기출문제.pdf")
        html = (
            "<html><head><title> 기출 게시판 </title></head><body>"
            '<a href="view.html?id=1">one</a>'
            '<a href="view.html?id=1">again</a>'
            '<a href="/files/2023.PDF">2023 모의고사</a>'
            f'<a href="/files/{encoded}"> </a>'
            '<a href="/files/form.hwp">form</a>'
            '<a href="/files/readme.txt">text</a>'
            '<a href="mailto:x@site.test">mail</a>'
            "<a>no href</a>"
            "</body></html>"
        )
        links, file_links, title = extract_links(html, BASE)

        assert title == "기출 게시판"
        assert links == [
            "https://site.test/board/view.html?id=1",
            "https://site.test/files/2023.PDF",
            f"https://site.test/files/{encoded}",
            "https://site.test/files/form.hwp",
            "https://site.test/files/readme.txt",
        ]
        assert [(f.type, f.display_name) for f in file_links] == [
            ("pdf", "2023 모의고사"),
            ("pdf", "기출문제.pdf"),
            ("hwp", "form"),
        ]

    def test_file_links_are_deduplicated(self):
        html = '<a href="/a.pdf">first</a><a href="/a.pdf">second</a>'
        _, file_links, _ = extract_links(html, BASE)
        assert len(file_links) == 1
        assert file_links[0].display_name == "first"

    def test_pattern_and_selector(self):
        html = (
            '<div class="board"><a href="view?id=1">1</a><a href="view?id=2">2</a></div>'
            '<div class="nav"><a href="/login">login</a></div>'
        )
        assert extract_links_with_selector(html, "div.board a", BASE) == [
            "https://site.test/board/view?id=1",
            "https://site.test/board/view?id=2",
        ]
        assert extract_links_with_pattern(html, r"login", BASE) == ["https://site.test/login"]

    def test_helpers(self):
        assert file_extension("https://site.test/a/b.DocX?x=1") == "docx"
        assert file_extension("https://site.test/a/") is None
        assert is_same_domain("https://site.test/a", "http://site.test:8080/b")
        assert not is_same_domain("https://site.test/a", "https://other.test/a")


class TestFetchTool:
    def test_success(self, fake_site):
        site = fake_site({BASE: html_page('<a href="/x">x</a>', title="List")})
        with site.client() as client:
            result = fetch_tool(BASE, client=client)
        assert result.success is True
        assert result.error is None
        assert result.title == "List"
        assert result.links == ["https://site.test/x"]

    def test_http_error_status(self, fake_site):
        site = fake_site({BASE: httpx.Response(500)})
        with site.client() as client:
            result = fetch_tool(BASE, client=client)
        assert result.success is False
        assert result.error == "HTTP 500: Internal Server Error"
        assert result.html == ""
        assert result.links == [] and result.file_links == []

    def test_timeout(self, fake_site):
        site = fake_site({BASE: httpx.ReadTimeout("slow")})
        with site.client() as client:
            result = fetch_tool(BASE, FetchSettings(timeout=5), client=client)
        assert result.success is False
        assert result.error == "Timeout after 5s"

    def test_connection_error(self, fake_site):
        site = fake_site({BASE: httpx.ConnectError("refused")})
        with site.client() as client:
            result = fetch_tool(BASE, client=client)
        assert result.success is False
        assert result.error == "refused"

    def test_sends_user_agent_and_extra_headers(self, fake_site):
        seen = {}

        def respond(request):
            seen.update(request.headers)
            return html_page()

        site = fake_site({BASE: respond})
        settings = FetchSettings(user_agent="ExamBot/2.0", headers={"X-Token": "abc"})
        with site.client() as client:
            fetch_tool(BASE, settings, client=client)
        assert seen["user-agent"] == "ExamBot/2.0"
        assert seen["x-token"] == "abc"
        assert seen["accept-language"].startswith("ko-KR")


class TestDownloadTool:
    def test_success(self, fake_site):
        url = "https://site.test/files/a.pdf"
        site = fake_site({url: httpx.Response(200, content=b"%PDF-1.4 data")})
        with site.client() as client:
            result = download_tool(url, client=client)
        assert result.success is True
        assert result.content == b"%PDF-1.4 data"
        assert result.size == 13

    def test_failure_is_reported_once(self, fake_site):
        url = "https://site.test/files/missing.pdf"
        site = fake_site({})
        with site.client() as client:
            result = download_tool(url, client=client)
        assert result.success is False
        assert result.error == "HTTP 404: Not Found"
        assert result.content == b""
        assert site.requested == [url]

    def test_timeout(self, fake_site):
        url = "https://site.test/files/slow.pdf"
        site = fake_site({url: httpx.ReadTimeout("slow")})
        with site.client() as client:
            result = download_tool(url, FetchSettings(timeout=1.5), client=client)
        assert result.success is False
        assert result.error == "Timeout after 1.5s"

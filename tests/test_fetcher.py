"""Tests for the proxy fallback chain. No network: the session is faked."""

import json

import pytest
import requests

from scratcher_ev.fetcher import (
    DEFAULT_PROXIES,
    FetchError,
    ProxyFetcher,
    validate_url,
)

TARGET = "https://www.calottery.com/en/scratchers"


class FakeResponse:
    def __init__(self, status_code=200, text="", headers=None):
        self.status_code = status_code
        self.text = text
        self.headers = headers or {'content-type': 'text/html'}

    @property
    def ok(self):
        return self.status_code < 400


class FakeSession:
    """Answers by proxy host; an Exception instance is raised instead."""

    def __init__(self, answers):
        self.answers = answers
        self.headers = {}
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        for prefix, answer in self.answers.items():
            if url.startswith(prefix):
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise requests.ConnectionError("no route")


RAW = "https://api.allorigins.win/raw"
GET = "https://api.allorigins.win/get"
JINA = "https://r.jina.ai/"


def make_fetcher(answers):
    return ProxyFetcher(session=FakeSession(answers), verbose=False)


class TestProxyUrls:

    def test_build_urls(self):
        raw, get, jina = DEFAULT_PROXIES
        url = "https://x.com/a?b=1"
        assert raw.build_url(url) == "https://api.allorigins.win/raw?url=https%3A%2F%2Fx.com%2Fa%3Fb%3D1"
        assert get.build_url(url) == "https://api.allorigins.win/get?url=https%3A%2F%2Fx.com%2Fa%3Fb%3D1"
        assert jina.build_url(url) == "https://r.jina.ai/http://x.com/a?b=1"


class TestFetch:

    def test_first_proxy_wins(self):
        fetcher = make_fetcher({RAW: FakeResponse(text="<html>raw</html>")})
        result = fetcher.fetch(TARGET)

        assert result.proxy_name == 'allorigins raw'
        assert result.content == "<html>raw</html>"
        assert len(fetcher.session.calls) == 1

    def test_falls_back_to_json_envelope(self):
        envelope = json.dumps({'contents': '<html>ok</html>', 'status': {'http_code': 200}})
        fetcher = make_fetcher({
            RAW: FakeResponse(status_code=500, text="oops"),
            GET: FakeResponse(text=envelope),
        })
        result = fetcher.fetch(TARGET)

        assert result.proxy_name == 'allorigins get'
        assert result.content == '<html>ok</html>'
        assert result.warning == 'HTTP 200'

    def test_sequential_order(self):
        fetcher = make_fetcher({
            RAW: FakeResponse(text="   "),
            GET: FakeResponse(text="not json"),
            JINA: FakeResponse(text="page"),
        })
        result = fetcher.fetch(TARGET)

        assert result.proxy_name == 'r.jina.ai'
        assert [c.split('?')[0] for c in fetcher.session.calls[:2]] == [RAW, GET]

    def test_all_fail(self):
        fetcher = make_fetcher({
            RAW: FakeResponse(status_code=503),
            GET: FakeResponse(text="{bad"),
            JINA: requests.ConnectionError("boom"),
        })
        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch(TARGET)

        err = excinfo.value
        assert len(err.errors) == 3
        assert err.errors[0] == "allorigins raw: HTTP 503"
        assert err.errors[1].startswith("allorigins get: JSON parse error")
        assert "boom" in err.errors[2]
        assert str(err).startswith("Fetch failed. Tried 3 proxies. ")

    def test_empty_envelope_reports_status(self):
        envelope = json.dumps({'contents': '', 'status': {'http_code': 404}})
        fetcher = ProxyFetcher(proxies=DEFAULT_PROXIES[1:2],
                               session=FakeSession({GET: FakeResponse(text=envelope)}),
                               verbose=False)
        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch(TARGET)
        assert excinfo.value.errors == ["allorigins get: HTTP 404"]

    @pytest.mark.parametrize("contents", [{'x': 1}, 42, ['<html>']])
    def test_non_string_envelope_contents(self, contents):
        envelope = json.dumps({'contents': contents, 'status': {'http_code': 200}})
        fetcher = ProxyFetcher(proxies=DEFAULT_PROXIES[1:2],
                               session=FakeSession({GET: FakeResponse(text=envelope)}),
                               verbose=False)
        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch(TARGET)
        assert excinfo.value.errors == ["allorigins get: JSON parse error: unexpected payload"]

    def test_bad_envelope_falls_through_to_next_proxy(self):
        fetcher = make_fetcher({
            RAW: FakeResponse(status_code=500),
            GET: FakeResponse(text=json.dumps({'contents': {'x': 1}})),
            JINA: FakeResponse(text="page"),
        })
        assert fetcher.fetch(TARGET).proxy_name == 'r.jina.ai'


class TestDiagnose:

    @pytest.mark.parametrize("url,message", [
        ("", "Paste a scratcher URL before running diagnostics."),
        ("   ", "Paste a scratcher URL before running diagnostics."),
        ("not a url", "That does not look like a valid URL."),
    ])
    def test_rejects_bad_urls(self, url, message):
        assert validate_url(url) == message
        problem, results = make_fetcher({}).diagnose(url)
        assert problem == message
        assert results == []

    def test_records_every_proxy(self):
        fetcher = make_fetcher({
            RAW: FakeResponse(text="<html>\n  <body>hi</body>\n</html>"),
            GET: FakeResponse(status_code=502, text=json.dumps({'contents': ''})),
            JINA: requests.Timeout("slow"),
        })
        problem, results = fetcher.diagnose(TARGET)

        assert problem is None
        assert [r.name for r in results] == ['allorigins raw', 'allorigins get', 'r.jina.ai']

        raw, get, jina = results
        assert raw.ok and raw.status == 200
        assert raw.snippet == "<html> <body>hi</body> </html>"
        assert raw.content_type == 'text/html'
        assert not get.ok
        assert get.snippet == "(empty response)"
        assert jina.error == "slow"
        assert any(line.startswith("Error: slow") for line in jina.lines())
        assert "HTTP status: 502 (not ok)" in get.lines()

    def test_unparseable_envelope_shows_raw_reply(self):
        fetcher = ProxyFetcher(proxies=DEFAULT_PROXIES[1:2],
                               session=FakeSession({GET: FakeResponse(text="<html>rate limited</html>")}),
                               verbose=False)
        _, (diag,) = fetcher.diagnose(TARGET)

        assert diag.snippet == "<html>rate limited</html>"
        assert diag.warning.startswith("JSON parse error")

    def test_non_string_contents_shows_raw_reply(self):
        raw = json.dumps({'contents': {'x': 1}})
        fetcher = ProxyFetcher(proxies=DEFAULT_PROXIES[1:2],
                               session=FakeSession({GET: FakeResponse(text=raw)}),
                               verbose=False)
        _, (diag,) = fetcher.diagnose(TARGET)

        assert diag.snippet == raw
        assert diag.warning == "JSON parse error: unexpected payload"

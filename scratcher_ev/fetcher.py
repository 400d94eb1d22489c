"""
Page fetching through public CORS proxies.

Proxies are tried one after another; the first one that returns a non-empty
page wins. Nothing is retried in parallel.
"""

import json
import re
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote, urlparse

import requests

from .models import ScratcherError


DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
}

SNIPPET_LENGTH = 500


class FetchError(ScratcherError):
    """Every proxy failed for a URL"""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(
            f"Fetch failed. Tried {len(errors)} proxies. {' | '.join(errors)}"
        )


def _parse_allorigins_get(text: str, keep_raw: bool = False) -> Tuple[str, str]:
    """
    Unwrap the /get JSON envelope.

    With keep_raw, a reply that is not a usable envelope comes back as the
    raw text so diagnostics can show what the proxy actually sent.
    """
    fallback = text if keep_raw else ""
    try:
        data = json.loads(text)
    except ValueError as e:
        return fallback, f"JSON parse error: {e}"
    if not isinstance(data, dict):
        return fallback, "JSON parse error: unexpected payload"
    contents = data.get('contents')
    if contents is not None and not isinstance(contents, str):
        return fallback, "JSON parse error: unexpected payload"
    status = data.get('status') or {}
    code = status.get('http_code') if isinstance(status, dict) else None
    return contents or "", f"HTTP {code}" if code else ""


@dataclass(frozen=True)
class Proxy:
    name: str
    build_url: Callable[[str], str]
    parse: Optional[Callable[..., Tuple[str, str]]] = None

    def unwrap(self, text: str, keep_raw: bool = False) -> Tuple[str, str]:
        """Returns (content, warning)"""
        if self.parse is None:
            return text, ""
        return self.parse(text, keep_raw=keep_raw)


DEFAULT_PROXIES = (
    Proxy(
        name='allorigins raw',
        build_url=lambda url: f"https://api.allorigins.win/raw?url={quote(url, safe='')}",
    ),
    Proxy(
        name='allorigins get',
        build_url=lambda url: f"https://api.allorigins.win/get?url={quote(url, safe='')}",
        parse=_parse_allorigins_get,
    ),
    Proxy(
        name='r.jina.ai',
        build_url=lambda url: "https://r.jina.ai/http://" + re.sub(r'^https?://', '', url),
    ),
)


@dataclass
class FetchResult:
    content: str
    proxy_name: str
    warning: str = ""


@dataclass
class ProxyDiagnostic:
    name: str
    proxy_url: str
    status: Optional[int] = None
    ok: bool = False
    duration_ms: Optional[int] = None
    content_type: Optional[str] = None
    snippet: str = ""
    warning: str = ""
    error: str = ""

    def lines(self) -> List[str]:
        def line(label, value):
            return f"{label}: {value if value not in (None, '') else 'n/a'}"

        out = [f"=== {self.name} ===", line('Proxy URL', self.proxy_url)]
        if self.error:
            out.append(line('Error', self.error))
            return out
        out.append(line('HTTP status', f"{self.status} ({'ok' if self.ok else 'not ok'})"))
        out.append(line('Duration', f"{self.duration_ms}ms"))
        out.append(line('Content-Type', self.content_type))
        if self.warning:
            out.append(line('Warning', self.warning))
        out.append(line('Snippet', self.snippet))
        return out


def validate_url(url: str) -> Optional[str]:
    """Returns an error message, or None when the URL looks usable"""
    if not url or not url.strip():
        return "Paste a scratcher URL before running diagnostics."
    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.netloc:
        return "That does not look like a valid URL."
    return None


class ProxyFetcher:
    """Fetches pages through a chain of CORS proxies"""

    def __init__(self, proxies=DEFAULT_PROXIES, timeout: float = 30,
                 delay_seconds: float = 0.0, verbose: bool = True,
                 session: Optional[requests.Session] = None):
        self.proxies = tuple(proxies)
        self.timeout = timeout
        self.delay = delay_seconds
        self.verbose = verbose
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def log(self, message: str):
        if self.verbose:
            print(message)

    def fetch(self, url: str) -> FetchResult:
        errors = []
        for proxy in self.proxies:
            self.log(f"  Fetching via {proxy.name}...")
            try:
                response = self.session.get(proxy.build_url(url), timeout=self.timeout)
                if not response.ok:
                    raise ScratcherError(f"HTTP {response.status_code}")
                content, warning = proxy.unwrap(response.text)
                content = (content or "").strip()
                if not content:
                    raise ScratcherError(warning or "Empty response")
                return FetchResult(content=content, proxy_name=proxy.name, warning=warning)
            except (requests.RequestException, ScratcherError) as e:
                self.log(f"  {proxy.name} failed: {e}")
                errors.append(f"{proxy.name}: {e}")
                if self.delay:
                    time.sleep(self.delay)
        raise FetchError(errors)

    def diagnose(self, url: str) -> Tuple[Optional[str], List[ProxyDiagnostic]]:
        """
        Try every proxy for one URL.

        Returns (validation message, per-proxy results). Per-proxy failures
        are recorded, not raised.
        """
        problem = validate_url(url)
        if problem:
            return problem, []
        url = url.strip()
        results = []
        for proxy in self.proxies:
            proxy_url = proxy.build_url(url)
            diag = ProxyDiagnostic(name=proxy.name, proxy_url=proxy_url)
            start = time.perf_counter()
            try:
                response = self.session.get(proxy_url, timeout=self.timeout)
            except requests.RequestException as e:
                diag.error = str(e)
                results.append(diag)
                continue
            diag.duration_ms = round((time.perf_counter() - start) * 1000)
            diag.status = response.status_code
            diag.ok = response.ok
            diag.content_type = response.headers.get('content-type')
            content, diag.warning = proxy.unwrap(response.text, keep_raw=True)
            snippet = re.sub(r'\s+', ' ', (content or "")[:SNIPPET_LENGTH])
            diag.snippet = snippet or "(empty response)"
            results.append(diag)
        return None, results

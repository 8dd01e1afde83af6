"""
Web search through DuckDuckGo's HTML endpoint. No API key needed.

    query --GET html.duckduckgo.com--> page --parse--> [SearchResult] --> markdown list

Result links on that page point at a redirect (`/l/?uddg=<encoded target>`);
the real target is decoded from the `uddg` parameter.
"""

import html
import logging
import re
from dataclasses import dataclass
from urllib.parse import unquote

import httpx

logger = logging.getLogger(__name__)

SEARCH_URL = "https://html.duckduckgo.com/html/"
SEARCH_TIMEOUT = 30.0
USER_AGENT = ("Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
              "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36")
DEFAULT_RESULTS = 5
MAX_RESULTS = 10

_RESULT_LINK = re.compile(r'<a([^>]*class="result__a"[^>]*)>(.*?)</a>', re.DOTALL)
_SNIPPET = re.compile(r'<(a|div)[^>]*class="result__snippet"[^>]*>(.*?)</\1>', re.DOTALL)
_HREF = re.compile(r'href="([^"]+)"')
_UDDG = re.compile(r"uddg=([^&\"']+)")
_TAG = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    snippet: str = ""


def _text(fragment: str) -> str:
    return " ".join(html.unescape(_TAG.sub("", fragment)).split())


def _domain(url: str) -> str:
    return url.split("//", 1)[-1].split("/", 1)[0] or "Result"


def _target(href: str) -> str:
    href = html.unescape(href)
    match = _UDDG.search(href)
    if match:
        return unquote(match.group(1))
    if href.startswith("//"):
        return "https:" + href
    return href


def parse_search_html(page: str, max_results: int = DEFAULT_RESULTS) -> list:
    results = []
    seen = set()

    def add(url, title, snippet=""):
        if not url.startswith("http") or "duckduckgo.com" in url or url in seen:
            return
        seen.add(url)
        results.append(SearchResult(title or _domain(url), url, snippet))

    snippets = [_text(body) for _, body in _SNIPPET.findall(page)]
    for i, (attrs, title) in enumerate(_RESULT_LINK.findall(page)):
        if len(results) >= max_results:
            break
        href = _HREF.search(attrs)
        if href:
            add(_target(href.group(1)), _text(title), snippets[i] if i < len(snippets) else "")

    # Layout without result__a anchors: fall back to bare redirect targets.
    if not results:
        for encoded in _UDDG.findall(page):
            if len(results) >= max_results:
                break
            add(unquote(encoded), "")

    return results[:max_results]


def format_results(query: str, results: list) -> str:
    if not results:
        return f"No search results found for: {query}"
    entries = []
    for i, r in enumerate(results, 1):
        entry = f"{i}. **{r.title}**\n   URL: {r.url}\n"
        if r.snippet:
            entry += f"   {r.snippet}\n"
        entries.append(entry)
    return f"## Search Results for: {query}\n\n" + "\n".join(entries)


def web_search(client: httpx.Client, query: str, max_results: int = DEFAULT_RESULTS) -> list:
    """Raises httpx.HTTPError on transport failure or a non-2xx status."""
    response = client.get(SEARCH_URL, params={"q": query})
    response.raise_for_status()
    return parse_search_html(response.text, max_results)


def run_web_search(client, query: str, max_results: int = None) -> str:
    query = query.strip()
    if not query:
        return "Error: query must not be empty"
    n = max(1, min(MAX_RESULTS, max_results or DEFAULT_RESULTS))
    logger.debug("web_search %r (max %d)", query, n)
    try:
        if client is not None:
            results = web_search(client, query, n)
        else:
            with httpx.Client(timeout=SEARCH_TIMEOUT, follow_redirects=True,
                              headers={"User-Agent": USER_AGENT}) as own:
                results = web_search(own, query, n)
    except httpx.HTTPError as e:
        logger.warning("web_search %r failed: %s", query, e)
        return f"Error: Web search failed: {e}"
    return format_results(query, results)

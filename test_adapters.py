"""
Source Adapter Tests

Normalization, retry/backoff and rate limiting for the three source adapters,
driven through httpx.MockTransport.
"""

import asyncio
import time

import httpx
import pytest

from paper_federation.config import create_adapter, load_config
from paper_federation.errors import HttpError, RetriesExhausted
from paper_federation.models import SearchFilters, Source
from paper_federation.openalex import reconstruct_abstract
from paper_federation.retry import RateLimiter


def make_adapter(source: Source, handler, min_interval: float = 0.0):
    config = load_config(profile="test")
    return create_adapter(
        source,
        config,
        RateLimiter(min_interval),
        transport=httpx.MockTransport(handler),
    )


async def run_search(adapter, *args, **kwargs):
    async with adapter:
        return await adapter.search(*args, **kwargs)


async def run_details(adapter, local_id):
    async with adapter:
        return await adapter.get_details(local_id)


S2_HIT = {
    "paperId": "abc123",
    "title": "Attention Is All You Need",
    "abstract": None,
    "year": 2017,
    "authors": [
        {"authorId": "1741101", "name": "Ashish Vaswani"},
        {"authorId": None, "name": None},
    ],
    "venue": "",
    "citationCount": None,
    "isOpenAccess": True,
    "openAccessPdf": {"url": "https://arxiv.org/pdf/1706.03762.pdf"},
    "externalIds": {"DOI": "10.48550/arXiv.1706.03762", "ArXiv": "1706.03762"},
    "fieldsOfStudy": None,
}

OPENALEX_WORK = {
    "id": "https://openalex.org/W2963403868",
    "title": "Attention Is All You Need",
    "abstract_inverted_index": {"The": [0], "cat": [1], "sat": [2]},
    "publication_year": None,
    "authorships": [
        {"author": {"id": "https://openalex.org/A1", "display_name": "Ashish Vaswani"}},
        {"author": None},
    ],
    "primary_location": None,
    "cited_by_count": 90000,
    "open_access": None,
    "doi": "https://doi.org/10.48550/arXiv.1706.03762",
    "keywords": [{"keyword": "attention"}, {"display_name": "transformer"}],
    "concepts": [{"display_name": f"Concept {i}"} for i in range(8)]
    + [{"display_name": "attention"}],
}

CORE_WORK = {
    "id": 98765,
    "title": "Open Transformers",
    "yearPublished": 2020,
    "authors": [{"name": "Jane Doe"}, None],
    "publisher": "Some Press",
    "journals": [{"title": "Journal of Open Things"}],
    "downloadUrl": "https://core.ac.uk/download/98765.pdf",
    "fieldOfStudy": "computer science",
}


def test_semantic_scholar_normalization_defaults():
    """Missing optional fields default instead of leaking None."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"total": 42, "offset": 10, "data": [S2_HIT, {"paperId": None}]})

    adapter = make_adapter(Source.SEMANTIC_SCHOLAR, handler)
    result = asyncio.run(
        run_search(
            adapter,
            "transformer",
            SearchFilters(year_from=2015, year_to=2020, open_access_only=True),
            page=2,
            page_size=10,
        )
    )

    assert result.total_results == 42
    assert len(result.papers) == 1
    paper = result.papers[0]
    assert paper.id == "ss_abc123"
    assert paper.abstract == ""
    assert paper.year == 2017
    assert paper.authors[0].name == "Ashish Vaswani"
    assert paper.authors[0].id == "1741101"
    assert paper.authors[1].name == "Unknown Author"
    assert paper.venue is None
    assert paper.citation_count == 0
    assert paper.keywords == []
    assert paper.open_access is True
    assert paper.pdf_url == "https://arxiv.org/pdf/1706.03762.pdf"
    assert paper.doi == "10.48550/arXiv.1706.03762"

    params = requests[0].url.params
    assert requests[0].url.path.endswith("/paper/search")
    assert params["offset"] == "10"
    assert params["limit"] == "10"
    assert params["year"] == "2015:2020"
    assert "openAccessPdf" in params


def test_semantic_scholar_sorts_locally():
    hits = [
        {**S2_HIT, "paperId": "a", "citationCount": 5, "year": 2010},
        {**S2_HIT, "paperId": "b", "citationCount": 50, "year": 2001},
        {**S2_HIT, "paperId": "c", "citationCount": 20, "year": 2022},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"total": 3, "data": hits})

    by_citations = asyncio.run(
        run_search(make_adapter(Source.SEMANTIC_SCHOLAR, handler), "q", SearchFilters(sort_by="citations"))
    )
    assert [p.id for p in by_citations.papers] == ["ss_b", "ss_c", "ss_a"]

    by_date = asyncio.run(
        run_search(make_adapter(Source.SEMANTIC_SCHOLAR, handler), "q", SearchFilters(sort_by="date"))
    )
    assert [p.id for p in by_date.papers] == ["ss_c", "ss_a", "ss_b"]


def test_openalex_normalization():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"meta": {"count": 7, "page": 1, "per_page": 5}, "results": [OPENALEX_WORK, None]},
        )

    adapter = make_adapter(Source.OPENALEX, handler)
    result = asyncio.run(
        run_search(
            adapter,
            "transformer",
            SearchFilters(year_from=2017, open_access_only=True, sort_by="citations"),
            page=1,
            page_size=5,
        )
    )

    assert result.total_results == 7
    assert result.page_size == 5
    paper = result.papers[0]
    assert paper.id == "oa_W2963403868"
    assert paper.abstract == "The cat sat"
    assert paper.year == 0
    assert paper.doi == "10.48550/arXiv.1706.03762"
    assert paper.venue is None
    assert paper.open_access is False
    assert paper.pdf_url is None
    assert paper.authors[1].name == "Unknown Author"
    assert paper.keywords[:2] == ["attention", "transformer"]
    assert len(paper.keywords) == 7  # 2 keywords + top 5 concepts

    params = requests[0].url.params
    assert params["search"] == "transformer"
    assert params["filter"] == "publication_year:>=2017,is_oa:true"
    assert params["sort"] == "cited_by_count:desc"


def test_reconstruct_abstract():
    assert reconstruct_abstract({"The": [0], "cat": [1], "sat": [2]}) == "The cat sat"
    assert reconstruct_abstract({"sat": [2], "The": [0], "cat": [1]}) == "The cat sat"
    assert reconstruct_abstract({"a": [0, 2], "b": [1]}) == "a b a"
    assert reconstruct_abstract(None) == ""
    assert reconstruct_abstract({}) == ""


def test_reconstruct_abstract_tied_positions():
    """Duplicate positions do not crash and keep index order."""
    assert reconstruct_abstract({"x": [0], "y": [0], "z": [1]}) == "x y z"


def test_core_normalization_and_query():
    requests: list[httpx.Request] = []
    closed_work = {"id": 1, "title": "Closed Paper", "authors": None}

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200, json={"totalHits": 120, "results": [CORE_WORK, closed_work]}
        )

    adapter = make_adapter(Source.CORE, handler)
    result = asyncio.run(
        run_search(
            adapter,
            "transformer",
            SearchFilters(year_from=2018, year_to=2021, open_access_only=True, sort_by="date"),
            page=3,
            page_size=4,
        )
    )

    assert result.total_results == 120
    assert [p.id for p in result.papers] == ["core_98765"]
    paper = result.papers[0]
    assert paper.open_access is True
    assert paper.venue == "Journal of Open Things"
    assert paper.keywords == ["computer science"]
    assert [a.name for a in paper.authors] == ["Jane Doe"]
    assert paper.abstract == ""
    assert paper.citation_count == 0

    params = requests[0].url.params
    assert params["q"] == "transformer AND yearPublished:[2018 TO 2021]"
    assert params["offset"] == "8"
    assert params["sort"] == "yearPublished:desc"


def test_zero_matches_is_not_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"total": 0, "offset": 0, "data": []})

    result = asyncio.run(run_search(make_adapter(Source.SEMANTIC_SCHOLAR, handler), "zzzz"))
    assert result.papers == []
    assert result.total_results == 0


def test_details_404_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Paper not found"})

    for source in (Source.SEMANTIC_SCHOLAR, Source.OPENALEX, Source.CORE):
        assert asyncio.run(run_details(make_adapter(source, handler), "missing")) is None


def test_details_routes_to_detail_endpoint():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=OPENALEX_WORK)

    paper = asyncio.run(run_details(make_adapter(Source.OPENALEX, handler), "W2963403868"))
    assert paper is not None
    assert paper.id == "oa_W2963403868"
    assert requests[0].url.path == "/works/W2963403868"


def test_rate_limited_honours_retry_after():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls == 1:
            return httpx.Response(429, headers={"Retry-After": "0.2"})
        return httpx.Response(200, json={"total": 1, "data": [S2_HIT]})

    started = time.monotonic()
    result = asyncio.run(run_search(make_adapter(Source.SEMANTIC_SCHOLAR, handler), "q"))
    elapsed = time.monotonic() - started

    assert calls == 2
    assert len(result.papers) == 1
    assert elapsed >= 0.2


def test_network_errors_retry_then_exhaust():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RetriesExhausted):
        asyncio.run(run_search(make_adapter(Source.OPENALEX, handler), "q"))
    assert calls == 3


def test_server_error_is_not_retried():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, text="unavailable")

    with pytest.raises(HttpError) as exc_info:
        asyncio.run(run_search(make_adapter(Source.CORE, handler), "q"))
    assert exc_info.value.status_code == 503
    assert calls == 1


def test_rate_limiter_spaces_consecutive_calls():
    """N calls take at least (N-1) x min_interval even with an instant transport."""
    min_interval = 0.05
    calls = 4

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"meta": {"count": 0}, "results": []})

    async def run():
        async with make_adapter(Source.OPENALEX, handler, min_interval) as adapter:
            for _ in range(calls):
                await adapter.search("q")

    started = time.monotonic()
    asyncio.run(run())
    assert time.monotonic() - started >= (calls - 1) * min_interval


def main():
    """Run all tests."""
    test_semantic_scholar_normalization_defaults()
    test_semantic_scholar_sorts_locally()
    test_openalex_normalization()
    test_reconstruct_abstract()
    test_reconstruct_abstract_tied_positions()
    test_core_normalization_and_query()
    test_zero_matches_is_not_an_error()
    test_details_404_returns_none()
    test_details_routes_to_detail_endpoint()
    test_rate_limited_honours_retry_after()
    test_network_errors_retry_then_exhaust()
    test_server_error_is_not_retried()
    test_rate_limiter_spaces_consecutive_calls()
    print("ALL ADAPTER TESTS PASSED!")


if __name__ == "__main__":
    main()

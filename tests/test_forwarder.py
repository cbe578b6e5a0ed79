"""Unit tests for target derivation and header policy of ProxyForwarder."""

from __future__ import annotations

import aiohttp
import pytest

from assets_by_filename.forwarder import ProxyForwarder, filter_response_headers, split_host_port
from assets_by_filename.models import InboundRequest, ResolvedFile

FILE = ResolvedFile(internal_id="8cbb43fe-4cdf-4991-8352-c461779cec02")


@pytest.fixture
async def session():
    async with aiohttp.ClientSession() as client_session:
        yield client_session


def make_forwarder(session, **kwargs) -> ProxyForwarder:
    return ProxyForwarder(session, **kwargs)


class TestSplitHostPort:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("example.com", ("example.com", 8055)),
            ("example.com:8080", ("example.com", 8080)),
            ("127.0.0.1:9000", ("127.0.0.1", 9000)),
            ("[::1]:9000", ("::1", 9000)),
            ("[::1]", ("::1", 8055)),
            ("example.com:notaport", ("example.com", 8055)),
            ("example.com:70000", ("example.com", 8055)),
            (":9000", ("localhost", 9000)),
        ],
    )
    def test_split(self, value, expected):
        assert split_host_port(value, 8055) == expected


class TestTargetResolution:
    async def test_host_header_wins(self, session):
        forwarder = make_forwarder(session, default_host="fallback:1234")
        inbound = InboundRequest(headers=(("Host", "cdn.example.com:8443"),))

        assert forwarder.resolve_target(inbound) == ("cdn.example.com", 8443)

    async def test_host_header_without_port_uses_default_port(self, session):
        forwarder = make_forwarder(session, default_port=9100)
        inbound = InboundRequest(headers=(("host", "cdn.example.com"),))

        assert forwarder.resolve_target(inbound) == ("cdn.example.com", 9100)

    async def test_configured_default_host_when_no_host_header(self, session):
        forwarder = make_forwarder(session, default_host="directus.internal:9000")

        assert forwarder.resolve_target(InboundRequest()) == ("directus.internal", 9000)

    async def test_localhost_fallback(self, session):
        forwarder = make_forwarder(session, default_port=8055)

        assert forwarder.resolve_target(InboundRequest()) == ("localhost", 8055)


class TestRequestSpec:
    async def test_path_carries_original_query_verbatim(self, session):
        forwarder = make_forwarder(session)
        query = "width=800&format=webp&tag=b&tag=a&name=caf%C3%A9%20au%20lait&fit=cover"
        inbound = InboundRequest(query=query, headers=(("Host", "localhost:8055"),))

        spec = forwarder.build_request_spec(FILE, inbound)

        assert spec.target_path == f"/assets/{FILE.internal_id}?{query}"

    async def test_no_query_means_no_question_mark(self, session):
        spec = make_forwarder(session).build_request_spec(FILE, InboundRequest())

        assert spec.target_path == f"/assets/{FILE.internal_id}"

    async def test_bare_question_mark_is_kept(self, session):
        spec = make_forwarder(session).build_request_spec(FILE, InboundRequest(query=""))

        assert spec.target_path == f"/assets/{FILE.internal_id}?"

    async def test_host_header_is_not_forwarded(self, session):
        inbound = InboundRequest(
            headers=(
                ("Host", "cdn.example.com"),
                ("Accept", "image/webp"),
                ("If-None-Match", '"abc"'),
                ("X-Forwarded-For", "10.0.0.1"),
                ("X-Forwarded-For", "10.0.0.2"),
            )
        )

        spec = make_forwarder(session).build_request_spec(FILE, inbound)

        assert all(key.lower() != "host" for key, _ in spec.forwarded_headers)
        assert spec.forwarded_headers == (
            ("Accept", "image/webp"),
            ("If-None-Match", '"abc"'),
            ("X-Forwarded-For", "10.0.0.1"),
            ("X-Forwarded-For", "10.0.0.2"),
        )

    async def test_url_and_scheme(self, session):
        forwarder = make_forwarder(session, scheme="https", canonical_route="/assets/")
        inbound = InboundRequest(query="w=1", headers=(("Host", "[::1]:8055"),))

        spec = forwarder.build_request_spec(ResolvedFile(internal_id="X"), inbound)

        assert spec.url == "https://[::1]:8055/assets/X?w=1"

    async def test_internal_id_is_path_escaped(self, session):
        spec = make_forwarder(session).build_request_spec(ResolvedFile(internal_id="a/b"), InboundRequest())

        assert spec.target_path == "/assets/a%2Fb"


class TestResponseHeaders:
    def test_hop_by_hop_headers_are_dropped(self):
        relayed = filter_response_headers(
            [
                ("Content-Type", "image/png"),
                ("Connection", "keep-alive"),
                ("Transfer-Encoding", "chunked"),
                ("transfer-encoding", "chunked"),
                ("Cache-Control", "public, max-age=3600"),
            ]
        )

        assert "Connection" not in relayed
        assert "Transfer-Encoding" not in relayed
        assert relayed["Content-Type"] == "image/png"
        assert relayed["Cache-Control"] == "public, max-age=3600"

    def test_repeated_headers_survive(self):
        relayed = filter_response_headers([("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")])

        assert relayed.getall("Set-Cookie") == ["a=1", "b=2"]

"""
Regression tests for issues found during code review.

1. Domain errors must reach the client as JSON with the right status (not 500)
2. A malformed Authorization header must not lock anonymous readers out
3. CORS must not set allow_credentials=true with allow_origins=*
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# 1. Domain errors -> JSON responses
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("method, url", [
    ("get", "/api/v1/posts/1"),
    ("get", "/api/v1/categories/1"),
    ("get", "/api/v1/tags/1"),
    ("get", "/api/v1/users/1"),
])
async def test_not_found_is_json(async_client: AsyncClient, method, url):
    resp = await getattr(async_client, method)(url)
    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("application/json")
    assert "detail" in resp.json()


# ---------------------------------------------------------------------------
# 2. Bad credentials are treated as anonymous on public reads
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("header", ["Bearer", "Basic abc", "Bearer a.b.c"])
async def test_malformed_authorization_is_anonymous(async_client: AsyncClient, header):
    resp = await async_client.get("/api/v1/posts", headers={"Authorization": header})
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# 3. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    """
    When allow_origins=["*"], the response must NOT include
    Access-Control-Allow-Credentials: true, per the CORS specification.
    """
    resp = await async_client.options(
        "/api/v1/posts",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true", (
        "CORS must not combine allow_origins=* with allow_credentials=true"
    )


"""AI Route & Health — HTTP contract tests through the ASGI app.

Tests cover:
    - 200 {"result": ...} on success
    - Failure bodies always carry a top-level "message"
    - Status mapping: unknown action/invalid payload 400, exhausted credentials 429,
      exhausted retries 503, no credentials 500, malformed reply 502,
      unclassified upstream errors keep their status
    - Readiness probe reflects the credential pool
"""

import httpx
import pytest

from persona_ai.api.dependencies import get_action_dispatcher, get_credential_pool
from persona_ai.core.credential_pool import CredentialPool
from persona_ai.main import app

from tests.services.mock_completion import make_dispatcher, status_error, text_response

URL = "/api/v1/ai"


@pytest.fixture
def use_script():
    """Install a scripted dispatcher; returns the registry for call inspection."""

    def install(script, **kwargs):
        dispatcher, registry, pool, _ = make_dispatcher(script, **kwargs)
        app.dependency_overrides[get_action_dispatcher] = lambda: dispatcher
        app.dependency_overrides[get_credential_pool] = lambda: pool
        return registry

    yield install
    app.dependency_overrides.clear()


async def _post(body):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(URL, json=body)


async def _get(path):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path)


# ─── Success ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_success_envelope(use_script):
    use_script([text_response("Calm and polite.")])

    response = await _post({"action": "generateShortTone", "payload": {"fullTone": "..."}})

    assert response.status_code == 200
    assert response.json() == {"result": "Calm and polite."}


@pytest.mark.asyncio
async def test_structured_result_is_camel_case(use_script):
    use_script([text_response(
        '{"responseText": "Done.", "updatedParameters": {"tone": "Soft"}}',
    )])

    response = await _post({
        "action": "continuePersonaCreationChat",
        "payload": {"history": [{"role": "user", "text": "softer"}]},
    })

    assert response.status_code == 200
    assert response.json()["result"]["updatedParameters"] == {"tone": "Soft"}


# ─── Client errors ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_unknown_action_is_400(use_script):
    registry = use_script([])

    response = await _post({"action": "doMagic", "payload": {}})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid action: doMagic"
    assert registry.calls == []


@pytest.mark.asyncio
async def test_invalid_payload_is_400(use_script):
    use_script([])

    response = await _post({"action": "translateNameToRomaji", "payload": {}})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PAYLOAD"


@pytest.mark.asyncio
async def test_missing_action_is_400(use_script):
    use_script([])

    response = await _post({"payload": {}})

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid request data")


# ─── Invocation failures ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_exhausted_credentials_is_429(use_script):
    use_script([status_error(429), status_error(429)], fallback="key-b")

    response = await _post({"action": "generateShortTone", "payload": {"fullTone": "x"}})

    assert response.status_code == 429
    body = response.json()
    assert "Quota exceeded" in body["message"]
    assert body["error"]["context"]["action"] == "generateShortTone"
    assert body["error"]["context"]["credential_index"] == 1


@pytest.mark.asyncio
async def test_exhausted_retries_is_503(use_script):
    use_script([status_error(503)] * 3)

    response = await _post({"action": "generateShortTone", "payload": {"fullTone": "x"}})

    assert response.status_code == 503
    assert "overloaded" in response.json()["message"]


@pytest.mark.asyncio
async def test_no_credentials_is_500(use_script):
    registry = use_script([], primary=None)

    response = await _post({"action": "generateShortTone", "payload": {"fullTone": "x"}})

    assert response.status_code == 500
    body = response.json()
    assert "ANTHROPIC_API_KEY" in body["message"]
    assert body["error"]["context"]["action"] == "generateShortTone"
    assert registry.calls == []


@pytest.mark.asyncio
async def test_malformed_reply_is_502(use_script):
    use_script([text_response("no json here")])

    response = await _post({"action": "extractParamsFromDoc", "payload": {"documentText": "x"}})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "MALFORMED_JSON"


@pytest.mark.asyncio
async def test_upstream_error_keeps_status(use_script):
    use_script([status_error(400, "prompt is too long")])

    response = await _post({"action": "generateShortTone", "payload": {"fullTone": "x"}})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "prompt is too long"
    assert body["error"]["code"] == "UPSTREAM_API_ERROR"


@pytest.mark.asyncio
async def test_unexpected_error_is_500_naming_exception_class(use_script):
    use_script([KeyError("text")])

    response = await _post({"action": "generateShortTone", "payload": {"fullTone": "x"}})

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "An internal error occurred (KeyError)."
    assert "'text'" not in body["message"]
    assert body["error"]["code"] == "INTERNAL_ERROR"


# ─── Health ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_liveness():
    response = await _get("/api/v1/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ready_with_credentials(use_script):
    use_script([], fallback="key-b")

    response = await _get("/api/v1/health/ready")

    assert response.status_code == 200
    assert response.json()["checks"]["credentials"] == 2


@pytest.mark.asyncio
async def test_not_ready_without_credentials():
    app.dependency_overrides[get_credential_pool] = lambda: CredentialPool.from_secrets(None)
    try:
        response = await _get("/api/v1/health/ready")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json()["reason"] == "no_credentials_configured"

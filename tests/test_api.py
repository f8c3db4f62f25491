# =============================================================================
# tests/test_api.py - Backend HTTP API Tests
# =============================================================================
# End-to-end flows through the FastAPI app:
# - Bot registration and link issuing (X-Bot-Secret)
# - Token resolution with the error codes the pages rely on
# - Admin CRUD behind an admin_panel token
# - Rating submission behind a rating_page token
# =============================================================================

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

import api.routes as routes_module
from api import app
from core import issue_link
from core.auth_links import utcnow
from database import AuthLinkPurpose
from tests.conftest import ADMIN_TELEGRAM_ID, BOT_HEADERS


def token_from_url(url: str) -> str:
    return parse_qs(urlparse(url).query)["token"][0]


async def register(client, telegram_id, full_name=None, username=None):
    response = await client.post(
        "/api/telegram/register",
        json={"telegram_id": telegram_id, "username": username, "full_name": full_name},
        headers=BOT_HEADERS,
    )
    assert response.status_code == 200
    return response


async def request_token(client, telegram_id, purpose, context=None):
    response = await client.post(
        "/api/auth/link",
        json={"telegram_id": telegram_id, "purpose": purpose, "context": context or {}},
        headers=BOT_HEADERS,
    )
    assert response.status_code == 200, response.text
    return token_from_url(response.json()["url"])


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_token(client):
    await register(client, ADMIN_TELEGRAM_ID, full_name="Организатор")
    return await request_token(client, ADMIN_TELEGRAM_ID, "admin_panel")


@pytest.fixture
async def tasting(client, admin_token):
    """Tasting created through the admin API: one sample, aroma and sweetness."""
    headers = bearer(admin_token)

    response = await client.post("/api/tastings", json={"title": "Белые чаи"}, headers=headers)
    assert response.status_code == 201
    tasting_id = response.json()["id"]

    response = await client.post(
        f"/api/tastings/{tasting_id}/samples", json={"name": "Бай Хао Инь Чжэнь"}, headers=headers
    )
    assert response.status_code == 201

    for code, name in (("aroma", "Аромат"), ("sweetness", "Сладость")):
        response = await client.post(
            f"/api/tastings/{tasting_id}/dimensions",
            json={"code": code, "name": name, "min_value": 0, "max_value": 10},
            headers=headers,
        )
        assert response.status_code == 201

    response = await client.get(f"/api/tastings/{tasting_id}")
    return response.json()


# =============================================================================
# Service endpoints
# =============================================================================

class TestServiceEndpoints:
    """Tests for /health and /metrics."""

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["components"]["database"]["status"] == "ok"

    async def test_metrics(self, client):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "auth_links_issued" in response.text


# =============================================================================
# Bot endpoints
# =============================================================================

class TestBotEndpoints:
    """Tests for registration and link issuing."""

    async def test_bot_secret_required(self, client):
        response = await client.post("/api/telegram/register", json={"telegram_id": 1})

        assert response.status_code == 401

    async def test_wrong_bot_secret(self, client):
        response = await client.post(
            "/api/telegram/register",
            json={"telegram_id": 1},
            headers={"X-Bot-Secret": "nope"},
        )

        assert response.status_code == 401

    async def test_register_and_resolve(self, client):
        """Registered user resolves a rating link back to their name and context."""
        await register(client, 42, full_name="Анна Чайная", username="tea_lover")
        context = {"tasting_id": "T1", "tea_sample_id": "S1"}

        token = await request_token(client, 42, "rating_page", context)
        response = await client.get("/api/auth/resolve", params={"token": token})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["name"] == "Анна Чайная"
        assert body["purpose"] == "rating_page"
        assert body["context"] == context

    async def test_link_url_uses_page_path(self, client):
        await register(client, 42)

        response = await client.post(
            "/api/auth/link",
            json={"telegram_id": 42, "purpose": "result_page"},
            headers=BOT_HEADERS,
        )

        assert response.json()["url"].startswith("https://tea.example.com/results?token=")

    async def test_link_for_unregistered_user(self, client):
        response = await client.post(
            "/api/auth/link",
            json={"telegram_id": 777, "purpose": "rating_page"},
            headers=BOT_HEADERS,
        )

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_admin_link_for_non_admin(self, client):
        await register(client, 42)

        response = await client.post(
            "/api/auth/link",
            json={"telegram_id": 42, "purpose": "admin_panel"},
            headers=BOT_HEADERS,
        )

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    async def test_unknown_purpose(self, client):
        await register(client, 42)

        response = await client.post(
            "/api/auth/link",
            json={"telegram_id": 42, "purpose": "everything"},
            headers=BOT_HEADERS,
        )

        assert response.status_code == 422

    async def test_configured_admin_becomes_admin(self, client, admin_token):
        response = await client.get("/api/auth/resolve", params={"token": admin_token})

        assert response.status_code == 200
        assert response.json()["purpose"] == "admin_panel"


# =============================================================================
# Token resolution
# =============================================================================

class TestResolveEndpoint:
    """Tests for GET /api/auth/resolve error mapping."""

    async def test_expired_token(self, client, db):
        await register(client, 42)
        link = await issue_link(
            db, 42, AuthLinkPurpose.RESULT_PAGE, ttl=timedelta(minutes=5), now=utcnow() - timedelta(hours=1)
        )

        response = await client.get("/api/auth/resolve", params={"token": link.token})

        assert response.status_code == 410
        assert response.json()["code"] == "LINK_EXPIRED"

    async def test_expired_bearer_token(self, client, db, tasting):
        await register(client, 42)
        link = await issue_link(
            db, 42, AuthLinkPurpose.RATING_PAGE, ttl=timedelta(minutes=5), now=utcnow() - timedelta(hours=1)
        )

        response = await client.post(
            "/api/ratings",
            json={"user_id": link.user_id, "tea_sample_id": tasting["samples"][0]["id"], "data": {"aroma": 5}},
            headers=bearer(link.token),
        )

        assert response.status_code == 410
        assert response.json()["code"] == "LINK_EXPIRED"


    async def test_unknown_token(self, client):
        response = await client.get("/api/auth/resolve", params={"token": "missing"})

        assert response.status_code == 404

    async def test_admin_link_is_single_use(self, client, admin_token):
        first = await client.get("/api/auth/resolve", params={"token": admin_token})
        second = await client.get("/api/auth/resolve", params={"token": admin_token})

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["code"] == "LINK_ALREADY_USED"


# =============================================================================
# Admin CRUD
# =============================================================================

class TestAdminCrud:
    """Tests for the admin_panel-protected endpoints."""

    async def test_tasting_created_with_structure(self, tasting):
        assert tasting["title"] == "Белые чаи"
        assert tasting["is_active"] is True
        assert [s["position"] for s in tasting["samples"]] == [1]
        assert [d["code"] for d in tasting["dimensions"]] == ["aroma", "sweetness"]

    async def test_requires_token(self, client):
        response = await client.post("/api/tastings", json={"title": "Без токена"})

        assert response.status_code == 403

    async def test_rating_token_is_not_admin_token(self, client):
        await register(client, 42)
        token = await request_token(client, 42, "rating_page")

        response = await client.post("/api/tastings", json={"title": "Чужой"}, headers=bearer(token))

        assert response.status_code == 403

    async def test_admin_token_works_after_page_resolve(self, client, admin_token):
        await client.get("/api/auth/resolve", params={"token": admin_token})

        response = await client.post(
            "/api/tastings", json={"title": "После открытия"}, headers=bearer(admin_token)
        )

        assert response.status_code == 201

    async def test_archive_tasting(self, client, admin_token, tasting):
        response = await client.patch(
            f"/api/tastings/{tasting['id']}",
            json={"is_active": False},
            headers=bearer(admin_token),
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        active = await client.get("/api/tastings", params={"active": "true"})
        everything = await client.get("/api/tastings")

        assert active.json() == []
        assert [t["id"] for t in everything.json()] == [tasting["id"]]

    async def test_invalid_dimension_code(self, client, admin_token, tasting):
        response = await client.post(
            f"/api/tastings/{tasting['id']}/dimensions",
            json={"code": "Not A Code", "name": "Плохой код"},
            headers=bearer(admin_token),
        )

        assert response.status_code == 422

    async def test_duplicate_dimension(self, client, admin_token, tasting):
        response = await client.post(
            f"/api/tastings/{tasting['id']}/dimensions",
            json={"code": "aroma", "name": "Аромат 2"},
            headers=bearer(admin_token),
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_update_sample(self, client, admin_token, tasting):
        sample_id = tasting["samples"][0]["id"]

        response = await client.patch(
            f"/api/samples/{sample_id}",
            json={"name": "Серебряные иглы"},
            headers=bearer(admin_token),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Серебряные иглы"

    async def test_deactivate_dimension(self, client, admin_token, tasting):
        dimension_id = tasting["dimensions"][1]["id"]

        response = await client.patch(
            f"/api/dimensions/{dimension_id}",
            json={"is_active": False},
            headers=bearer(admin_token),
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False

    async def test_unknown_tasting(self, client):
        response = await client.get("/api/tastings/12345")

        assert response.status_code == 404


# =============================================================================
# Ratings & reports
# =============================================================================

class TestRatingsApi:
    """Tests for rating submission, summary, profile and export."""

    async def rating_token(self, client, tasting):
        await register(client, 42, full_name="Анна Чайная")
        token = await request_token(client, 42, "rating_page", {"tasting_id": tasting["id"]})
        resolved = await client.get("/api/auth/resolve", params={"token": token})
        return token, resolved.json()["user"]["id"]

    async def test_submit_and_summarize(self, client, tasting):
        token, user_id = await self.rating_token(client, tasting)
        sample_id = tasting["samples"][0]["id"]

        response = await client.post(
            "/api/ratings",
            json={"user_id": user_id, "tea_sample_id": sample_id, "data": {"aroma": 7, "sweetness": 5}},
            headers=bearer(token),
        )
        assert response.status_code == 200
        assert response.json()["data"] == {"aroma": 7, "sweetness": 5}

        summary = await client.get(f"/api/tastings/{tasting['id']}/summary")
        assert summary.status_code == 200
        assert summary.json()["averages"] == {"aroma": 7, "sweetness": 5}

        result_token = await request_token(client, 42, "result_page", {"tasting_id": tasting["id"]})
        profile = await client.get(
            f"/api/users/{user_id}/tastings/{tasting['id']}/profile", headers=bearer(result_token)
        )
        assert profile.status_code == 200
        assert profile.json()["averages"] == {"aroma": 7, "sweetness": 5}

    async def test_rating_requires_token(self, client, tasting):
        response = await client.post(
            "/api/ratings",
            json={"user_id": 1, "tea_sample_id": tasting["samples"][0]["id"], "data": {"aroma": 1}},
        )

        assert response.status_code == 403

    async def test_token_bound_to_user(self, client, tasting):
        token, user_id = await self.rating_token(client, tasting)

        response = await client.post(
            "/api/ratings",
            json={"user_id": user_id + 100, "tea_sample_id": tasting["samples"][0]["id"], "data": {"aroma": 1}},
            headers=bearer(token),
        )

        assert response.status_code == 403

    async def test_out_of_range_value(self, client, tasting):
        token, user_id = await self.rating_token(client, tasting)

        response = await client.post(
            "/api/ratings",
            json={"user_id": user_id, "tea_sample_id": tasting["samples"][0]["id"], "data": {"aroma": 11}},
            headers=bearer(token),
        )

        assert response.status_code == 422
        assert "aroma" in response.json()["details"]

    async def test_export_csv(self, client, admin_token, tasting):
        token, user_id = await self.rating_token(client, tasting)
        await client.post(
            "/api/ratings",
            json={"user_id": user_id, "tea_sample_id": tasting["samples"][0]["id"], "data": {"aroma": 6}},
            headers=bearer(token),
        )

        response = await client.get(
            f"/api/tastings/{tasting['id']}/export.csv", headers=bearer(admin_token)
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines[0] == "sample_position,sample_name,user_id,user_name,aroma,sweetness,comment,updated_at"
        assert lines[1].startswith(f"1,Бай Хао Инь Чжэнь,{user_id},Анна Чайная,6,,")


# =============================================================================
# Pages
# =============================================================================

class TestPages:
    """Tests for the HTML pages opened from bot links."""

    @pytest.mark.parametrize("path", ["/rate", "/results", "/admin"])
    async def test_page_renders(self, client, path):
        response = await client.get(path, params={"token": "abc"})

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]


# =============================================================================
# Unexpected failures
# =============================================================================

class TestUnexpectedErrors:
    """Unhandled exceptions are rendered as 500 INTERNAL_ERROR."""

    async def test_internal_error(self, db, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(routes_module, "get_all_tastings", broken)

        # Starlette re-raises after sending the 500 response
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/tastings")

        assert response.status_code == 500
        assert response.json() == {"detail": "Внутренняя ошибка сервера", "code": "INTERNAL_ERROR"}


# =============================================================================
# Link scope
# =============================================================================

class TestLinkScope:
    """Tokens only reach the tasting and user they were issued for."""

    async def other_tasting(self, client, admin_token):
        headers = bearer(admin_token)
        response = await client.post("/api/tastings", json={"title": "Красные чаи"}, headers=headers)
        tasting_id = response.json()["id"]
        await client.post(f"/api/tastings/{tasting_id}/samples", json={"name": "Дянь Хун"}, headers=headers)
        await client.post(
            f"/api/tastings/{tasting_id}/dimensions", json={"code": "aroma", "name": "Аромат"}, headers=headers
        )
        return (await client.get(f"/api/tastings/{tasting_id}")).json()

    async def participant(self, client, purpose, tasting):
        await register(client, 42, full_name="Анна Чайная")
        token = await request_token(client, 42, purpose, {"tasting_id": tasting["id"]})
        resolved = await client.get("/api/auth/resolve", params={"token": token})
        return token, resolved.json()["user"]["id"]

    async def test_rating_other_tasting_forbidden(self, client, admin_token, tasting):
        other = await self.other_tasting(client, admin_token)
        token, user_id = await self.participant(client, "rating_page", tasting)

        response = await client.post(
            "/api/ratings",
            json={"user_id": user_id, "tea_sample_id": other["samples"][0]["id"], "data": {"aroma": 5}},
            headers=bearer(token),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    async def test_archived_tasting_not_rated(self, client, admin_token, tasting):
        token, user_id = await self.participant(client, "rating_page", tasting)
        await client.patch(
            f"/api/tastings/{tasting['id']}", json={"is_active": False}, headers=bearer(admin_token)
        )

        response = await client.post(
            "/api/ratings",
            json={"user_id": user_id, "tea_sample_id": tasting["samples"][0]["id"], "data": {"aroma": 5}},
            headers=bearer(token),
        )

        assert response.status_code == 422

    async def test_profile_requires_token(self, client, tasting):
        _, user_id = await self.participant(client, "result_page", tasting)

        response = await client.get(f"/api/users/{user_id}/tastings/{tasting['id']}/profile")

        assert response.status_code == 403

    async def test_profile_of_other_user_forbidden(self, client, tasting):
        token, user_id = await self.participant(client, "result_page", tasting)

        await register(client, 43, full_name="Борис")
        other_token = await request_token(client, 43, "result_page", {"tasting_id": tasting["id"]})
        other = await client.get("/api/auth/resolve", params={"token": other_token})
        other_id = other.json()["user"]["id"]

        response = await client.get(
            f"/api/users/{other_id}/tastings/{tasting['id']}/profile", headers=bearer(token)
        )

        assert other_id != user_id
        assert response.status_code == 403

    async def test_own_profile(self, client, tasting):
        token, user_id = await self.participant(client, "result_page", tasting)

        response = await client.get(
            f"/api/users/{user_id}/tastings/{tasting['id']}/profile", headers=bearer(token)
        )

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Анна Чайная"

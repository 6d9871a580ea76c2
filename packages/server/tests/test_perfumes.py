"""
Tests for the perfume collection: create, read, update, delete, favorites.

Covers:
- Input validation (price, rating half-steps, categories, notes)
- Ownership enforcement on every write
- Atomic favorite toggle
- Follower notifications on create/delete (including the delete scenario)
- HTTP envelope for success and failure
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlmodel import select

from app.core.context import RequestContext
from app.core.errors import AuthenticationError, AuthorizationError, NotFoundError
from app.models.comment import PerfumeComment
from app.models.follow import UserFollow
from app.models.notification import Notification
from app.models.perfume import Perfume
from app.services import perfumes as perfume_service
from app.services.notifications import SessionNotificationSink
from conftest import add_perfume, auth_headers
from scentshelf_shared.schemas.common import PerfumeCategory
from scentshelf_shared.schemas.perfumes import PerfumeCreate, PerfumeUpdate


def _create_payload(**overrides) -> PerfumeCreate:
    data = {
        "name": "Aqua",
        "brand": "Maison",
        "price": "120",
        "rating": 4,
        "notes": ["bergamot", "sea salt"],
        "categories": ["Świeże"],
    }
    data.update(overrides)
    return PerfumeCreate(**data)


async def _follow(session, follower, following):
    session.add(UserFollow(follower_id=follower.id, following_id=following.id))
    await session.commit()


# ---------------------------------------------------------------------------
# Unit tests: input validation
# ---------------------------------------------------------------------------


class TestPerfumeCreateValidation:
    def test_valid_payload(self):
        p = _create_payload(name="  Aqua  ", notes=[" citrus ", "", "  "])
        assert p.name == "Aqua"
        assert p.price == Decimal("120")
        assert p.notes == ["citrus"]
        assert p.categories == [PerfumeCategory.FRESH]

    @pytest.mark.parametrize("price", ["0", "-5"])
    def test_price_must_be_positive(self, price):
        with pytest.raises(ValidationError):
            _create_payload(price=price)

    def test_rating_half_steps(self):
        assert _create_payload(rating=3.5).rating == 3.5
        with pytest.raises(ValidationError):
            _create_payload(rating=3.3)
        with pytest.raises(ValidationError):
            _create_payload(rating=5.5)

    def test_categories_required(self):
        with pytest.raises(ValidationError):
            _create_payload(categories=[])

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            _create_payload(categories=["Metaliczne"])

    def test_all_is_not_a_storable_category(self):
        with pytest.raises(ValidationError):
            _create_payload(categories=["All"])

    def test_duplicate_categories_collapsed(self):
        p = _create_payload(categories=["Kwiatowe", "Drzewne", "Kwiatowe"])
        assert p.categories == [PerfumeCategory.FLORAL, PerfumeCategory.WOODY]

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            _create_payload(name="   ")


# ---------------------------------------------------------------------------
# Service tests
# ---------------------------------------------------------------------------


class TestCreatePerfume:
    @pytest.mark.asyncio
    async def test_create_starts_unfavorited(self, session, alice, alice_ctx):
        sink = SessionNotificationSink(session)
        created = await perfume_service.create_perfume(session, alice_ctx, sink, _create_payload())
        assert created.user_id == alice.id
        assert created.is_favorite is False
        assert created.categories == ["Świeże"]
        assert created.price == 120.0
        assert created.user_name == "Alice"

    @pytest.mark.asyncio
    async def test_categories_stored_as_plain_labels(self, session, alice_ctx):
        sink = SessionNotificationSink(session)
        created = await perfume_service.create_perfume(
            session, alice_ctx, sink, _create_payload(categories=["Kwiatowe", "Drzewne"])
        )
        row = await session.get(Perfume, created.id)
        assert row.categories == ["Kwiatowe", "Drzewne"]
        assert all(type(c) is str for c in row.categories)

    @pytest.mark.asyncio
    async def test_create_requires_user(self, session):
        with pytest.raises(AuthenticationError):
            await perfume_service.create_perfume(
                session, RequestContext(), SessionNotificationSink(session), _create_payload()
            )

    @pytest.mark.asyncio
    async def test_create_notifies_each_follower(self, session, alice, bob, carol, alice_ctx):
        await _follow(session, bob, alice)
        await _follow(session, carol, alice)

        created = await perfume_service.create_perfume(
            session, alice_ctx, SessionNotificationSink(session), _create_payload()
        )

        result = await session.execute(select(Notification))
        rows = result.scalars().all()
        assert sorted(n.user_id for n in rows) == sorted([bob.id, carol.id])
        for n in rows:
            assert n.type == "new_perfume"
            assert n.from_user_id == alice.id
            assert n.perfume_id == created.id
            assert "Aqua" in n.message

    @pytest.mark.asyncio
    async def test_create_without_followers_writes_nothing(self, session, alice_ctx):
        await perfume_service.create_perfume(
            session, alice_ctx, SessionNotificationSink(session), _create_payload()
        )
        result = await session.execute(select(Notification))
        assert result.scalars().all() == []


class TestUpdatePerfume:
    @pytest.mark.asyncio
    async def test_owner_can_update(self, session, alice, alice_ctx):
        perfume = await add_perfume(session, alice, name="Old")
        updated = await perfume_service.update_perfume(
            session,
            alice_ctx,
            perfume.id,
            PerfumeUpdate(name="New", rating=4.5, categories=["Drzewne"]),
        )
        assert updated.name == "New"
        assert updated.rating == 4.5
        assert updated.categories == ["Drzewne"]
        assert updated.brand == "House"

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, session, alice, bob_ctx):
        perfume = await add_perfume(session, alice, name="Mine")
        with pytest.raises(AuthorizationError):
            await perfume_service.update_perfume(
                session, bob_ctx, perfume.id, PerfumeUpdate(name="Stolen")
            )
        fresh = await perfume_service.get_perfume(session, perfume.id)
        assert fresh.name == "Mine"

    @pytest.mark.asyncio
    async def test_missing_perfume(self, session, alice_ctx):
        with pytest.raises(NotFoundError):
            await perfume_service.update_perfume(
                session, alice_ctx, uuid.uuid4(), PerfumeUpdate(name="x")
            )


class TestDeletePerfume:
    @pytest.mark.asyncio
    async def test_delete_notifies_followers_and_cascades(self, session, alice, bob, alice_ctx):
        await _follow(session, bob, alice)
        perfume = await add_perfume(session, alice, name="Aqua", brand="Maison")
        session.add(PerfumeComment(perfume_id=perfume.id, user_id=bob.id, comment="nice"))
        await session.commit()

        await perfume_service.delete_perfume(
            session, alice_ctx, SessionNotificationSink(session), perfume.id
        )

        with pytest.raises(NotFoundError):
            await perfume_service.get_perfume(session, perfume.id)

        comments = (await session.execute(select(PerfumeComment))).scalars().all()
        assert comments == []

        notes = (await session.execute(select(Notification))).scalars().all()
        assert len(notes) == 1
        assert notes[0].user_id == bob.id
        assert notes[0].type == "perfume_deleted"
        assert notes[0].perfume_id is None
        assert notes[0].message == "Deleted a perfume: Aqua by Maison"

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, session, alice, bob_ctx):
        perfume = await add_perfume(session, alice)
        with pytest.raises(AuthorizationError):
            await perfume_service.delete_perfume(
                session, bob_ctx, SessionNotificationSink(session), perfume.id
            )
        assert (await perfume_service.get_perfume(session, perfume.id)).id == perfume.id


class TestToggleFavorite:
    @pytest.mark.asyncio
    async def test_toggle_flips_and_persists(self, session, alice, alice_ctx):
        perfume = await add_perfume(session, alice)
        assert await perfume_service.toggle_favorite(session, alice_ctx, perfume.id) is True
        assert (await perfume_service.get_perfume(session, perfume.id)).is_favorite is True
        assert await perfume_service.toggle_favorite(session, alice_ctx, perfume.id) is False
        assert (await perfume_service.get_perfume(session, perfume.id)).is_favorite is False

    @pytest.mark.asyncio
    async def test_toggle_someone_elses(self, session, alice, bob_ctx):
        perfume = await add_perfume(session, alice)
        with pytest.raises(AuthorizationError):
            await perfume_service.toggle_favorite(session, bob_ctx, perfume.id)

    @pytest.mark.asyncio
    async def test_toggle_missing(self, session, alice_ctx):
        with pytest.raises(NotFoundError):
            await perfume_service.toggle_favorite(session, alice_ctx, uuid.uuid4())


# ---------------------------------------------------------------------------
# HTTP tests
# ---------------------------------------------------------------------------


class TestPerfumeEndpoints:
    @pytest.mark.asyncio
    async def test_create_and_fetch(self, client, alice):
        payload = {
            "name": "Aqua",
            "brand": "Maison",
            "price": 120,
            "rating": 4,
            "notes": ["sea salt"],
            "categories": ["Świeże"],
        }
        resp = await client.post("/api/v1/perfumes", json=payload, headers=auth_headers(alice))
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        perfume_id = body["perfume"]["id"]

        resp = await client.get(f"/api/v1/perfumes/{perfume_id}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Aqua"
        assert resp.json()["user_email"] == alice.email

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, client):
        resp = await client.post(
            "/api/v1/perfumes",
            json={"name": "x", "brand": "y", "price": 1, "categories": ["Kwiatowe"]},
        )
        assert resp.status_code == 401
        assert resp.json() == {
            "success": False,
            "error": "Not authenticated",
            "code": "NOT_AUTHENTICATED",
        }

    @pytest.mark.asyncio
    async def test_create_validation_envelope(self, client, alice):
        resp = await client.post(
            "/api/v1/perfumes",
            json={"name": "x", "brand": "y", "price": 0, "categories": []},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"
        assert "price" in body["error"]

    @pytest.mark.asyncio
    async def test_patch_forbidden_for_non_owner(self, client, session, alice, bob):
        perfume = await add_perfume(session, alice)
        resp = await client.patch(
            f"/api/v1/perfumes/{perfume.id}", json={"name": "Mine now"}, headers=auth_headers(bob)
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_favorite_endpoint(self, client, session, alice):
        perfume = await add_perfume(session, alice)
        resp = await client.post(
            f"/api/v1/perfumes/{perfume.id}/favorite", headers=auth_headers(alice)
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "error": None, "is_favorite": True}

    @pytest.mark.asyncio
    async def test_delete_endpoint(self, client, session, alice):
        perfume = await add_perfume(session, alice)
        resp = await client.delete(f"/api/v1/perfumes/{perfume.id}", headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        resp = await client.get(f"/api/v1/perfumes/{perfume.id}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Perfume not found"

"""
Tests for the follow graph, the user explorer and public profiles.

Covers:
- Follow / duplicate follow / self-follow / unknown target
- Unfollow (including the no-edge no-op)
- Follow notification to the target
- Explorer ordering and profile counters
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from app.core.context import RequestContext
from app.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationFailed
from app.models.follow import UserFollow
from app.models.notification import Notification
from app.services import follows as follow_service
from app.services import profiles as profile_service
from app.services.notifications import SessionNotificationSink
from conftest import add_perfume, auth_headers


class TestDisplayName:
    def test_prefers_full_name(self):
        assert profile_service.display_name("Alice", "a@example.com") == "Alice"

    def test_falls_back_to_email_local_part(self):
        assert profile_service.display_name(None, "carol@example.com") == "carol"

    def test_generic_fallback(self):
        assert profile_service.display_name(None, None) == "User"
        assert profile_service.display_name("", "@example.com") == "User"


class TestFollow:
    @pytest.mark.asyncio
    async def test_follow_creates_edge_and_notifies(self, session, alice, bob, alice_ctx):
        await follow_service.follow_user(session, alice_ctx, SessionNotificationSink(session), bob.id)

        assert await follow_service.is_following(session, alice.id, bob.id)
        assert not await follow_service.is_following(session, bob.id, alice.id)

        notes = (await session.execute(select(Notification))).scalars().all()
        assert len(notes) == 1
        assert notes[0].user_id == bob.id
        assert notes[0].from_user_id == alice.id
        assert notes[0].type == "follow"
        assert notes[0].title == "New follower!"

    @pytest.mark.asyncio
    async def test_duplicate_follow_rejected(self, session, bob, alice_ctx):
        sink = SessionNotificationSink(session)
        await follow_service.follow_user(session, alice_ctx, sink, bob.id)
        with pytest.raises(ConflictError, match="Already following this user"):
            await follow_service.follow_user(session, alice_ctx, sink, bob.id)

        edges = (await session.execute(select(UserFollow))).scalars().all()
        assert len(edges) == 1

    @pytest.mark.asyncio
    async def test_cannot_follow_self(self, session, alice, alice_ctx):
        with pytest.raises(ValidationFailed, match="Cannot follow yourself"):
            await follow_service.follow_user(
                session, alice_ctx, SessionNotificationSink(session), alice.id
            )

    @pytest.mark.asyncio
    async def test_unknown_target(self, session, alice_ctx):
        with pytest.raises(NotFoundError):
            await follow_service.follow_user(
                session, alice_ctx, SessionNotificationSink(session), uuid.uuid4()
            )

    @pytest.mark.asyncio
    async def test_requires_user(self, session, bob):
        with pytest.raises(AuthenticationError):
            await follow_service.follow_user(
                session, RequestContext(), SessionNotificationSink(session), bob.id
            )


class TestUnfollow:
    @pytest.mark.asyncio
    async def test_unfollow_removes_edge(self, session, alice, bob, alice_ctx):
        await follow_service.follow_user(session, alice_ctx, SessionNotificationSink(session), bob.id)
        await follow_service.unfollow_user(session, alice_ctx, bob.id)
        assert not await follow_service.is_following(session, alice.id, bob.id)

    @pytest.mark.asyncio
    async def test_unfollow_without_edge_is_noop(self, session, bob, alice_ctx):
        await follow_service.unfollow_user(session, alice_ctx, bob.id)
        assert await follow_service.list_following_ids(session, alice_ctx) == []

    @pytest.mark.asyncio
    async def test_refollow_after_unfollow(self, session, bob, alice_ctx):
        sink = SessionNotificationSink(session)
        await follow_service.follow_user(session, alice_ctx, sink, bob.id)
        await follow_service.unfollow_user(session, alice_ctx, bob.id)
        await follow_service.follow_user(session, alice_ctx, sink, bob.id)
        assert await follow_service.list_following_ids(session, alice_ctx) == [bob.id]


class TestExplorer:
    @pytest.mark.asyncio
    async def test_followed_first_then_by_collection_size(
        self, session, alice, bob, carol, alice_ctx
    ):
        for _ in range(3):
            await add_perfume(session, carol)
        await add_perfume(session, bob)
        session.add(UserFollow(follower_id=alice.id, following_id=bob.id))
        await session.commit()

        users = await profile_service.list_users(session, alice_ctx)
        assert [u.id for u in users] == [bob.id, carol.id]
        assert users[0].is_following is True
        assert users[0].perfume_count == 1
        assert users[1].is_following is False
        assert users[1].perfume_count == 3

    @pytest.mark.asyncio
    async def test_explorer_excludes_self(self, session, alice, alice_ctx):
        users = await profile_service.list_users(session, alice_ctx)
        assert alice.id not in [u.id for u in users]

    @pytest.mark.asyncio
    async def test_profile_counters(self, session, alice, bob, carol, bob_ctx):
        session.add(UserFollow(follower_id=alice.id, following_id=bob.id))
        session.add(UserFollow(follower_id=carol.id, following_id=bob.id))
        session.add(UserFollow(follower_id=bob.id, following_id=carol.id))
        await session.commit()

        profile = await profile_service.get_user_profile(session, RequestContext(), bob.id)
        assert profile.follower_count == 2
        assert profile.following_count == 1
        assert profile.is_following is False

        seen_by_bob = await profile_service.get_user_profile(session, bob_ctx, carol.id)
        assert seen_by_bob.is_following is True

    @pytest.mark.asyncio
    async def test_unknown_profile(self, session):
        with pytest.raises(NotFoundError):
            await profile_service.get_user_profile(session, RequestContext(), uuid.uuid4())


# ---------------------------------------------------------------------------
# HTTP tests
# ---------------------------------------------------------------------------


class TestFollowEndpoints:
    @pytest.mark.asyncio
    async def test_follow_then_duplicate(self, client, alice, bob):
        url = f"/api/v1/users/{bob.id}/follow"
        resp = await client.post(url, headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "error": None, "is_following": True}

        resp = await client.post(url, headers=auth_headers(alice))
        assert resp.status_code == 409
        assert resp.json() == {
            "success": False,
            "error": "Already following this user",
            "code": "CONFLICT",
        }

        resp = await client.get("/api/v1/users/me/following", headers=auth_headers(alice))
        assert resp.json() == {"following_ids": [str(bob.id)]}

    @pytest.mark.asyncio
    async def test_unfollow_without_edge(self, client, alice, bob):
        resp = await client.delete(f"/api/v1/users/{bob.id}/follow", headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json()["is_following"] is False

    @pytest.mark.asyncio
    async def test_self_follow_envelope(self, client, alice):
        resp = await client.post(f"/api/v1/users/{alice.id}/follow", headers=auth_headers(alice))
        assert resp.status_code == 422
        assert resp.json()["error"] == "Cannot follow yourself"

    @pytest.mark.asyncio
    async def test_explorer_requires_auth(self, client):
        resp = await client.get("/api/v1/users")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_public_profile(self, client, bob):
        resp = await client.get(f"/api/v1/users/{bob.id}")
        assert resp.status_code == 200
        assert resp.json()["full_name"] == "Bob"
        assert resp.json()["is_following"] is False

"""
WikiMaps Backend: Favourite and User Service Tests
==================================================

What we test:
    ✅ Favourites are listed with their map titles
    ✅ Adding the same favourite twice keeps one entry
    ✅ Unknown maps cannot be favourited
    ✅ Users can only remove their own favourites
    ✅ Deleting a map drops it from everyone's favourites
    ✅ UserService returns stored profiles or None
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from wikimaps.exceptions import NotFoundError, PersistenceError
from wikimaps.models import User
from wikimaps.services.favourite_service import FavouriteService
from wikimaps.services.map_service import MapService
from wikimaps.services.user_service import UserService


class TestFavouriteService:

    def setup_method(self):
        self.service = FavouriteService()
        self.maps = MapService()

    @pytest.mark.asyncio
    async def test_add_and_list(self, db_session):
        map_id = await self.maps.create_map(db_session, {"title": "Bakeries", "user_id": "bob"})

        added = await self.service.add_favourite(db_session, "alice", map_id)
        listed = await self.service.list_favourites(db_session, "alice")

        assert added.map_id == map_id
        assert added.title == "Bakeries"
        assert [(f.id, f.map_id, f.title) for f in listed] == [(added.id, map_id, "Bakeries")]

    @pytest.mark.asyncio
    async def test_add_twice_is_idempotent(self, db_session):
        map_id = await self.maps.create_map(db_session, {"title": "Trails", "user_id": "bob"})

        first = await self.service.add_favourite(db_session, "alice", map_id)
        second = await self.service.add_favourite(db_session, "alice", map_id)

        assert first.id == second.id
        assert len(await self.service.list_favourites(db_session, "alice")) == 1

    @pytest.mark.asyncio
    async def test_lists_are_per_user(self, db_session):
        map_id = await self.maps.create_map(db_session, {"title": "Trails", "user_id": "bob"})
        await self.service.add_favourite(db_session, "alice", map_id)

        assert await self.service.list_favourites(db_session, "carol") == []

    @pytest.mark.asyncio
    async def test_unknown_map_rejected(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.add_favourite(db_session, "alice", 31337)

    @pytest.mark.asyncio
    async def test_remove_own_favourite(self, db_session):
        map_id = await self.maps.create_map(db_session, {"title": "Trails", "user_id": "bob"})
        added = await self.service.add_favourite(db_session, "alice", map_id)

        await self.service.remove_favourite(db_session, "alice", added.id)

        assert await self.service.list_favourites(db_session, "alice") == []

    @pytest.mark.asyncio
    async def test_cannot_remove_someone_elses_favourite(self, db_session):
        map_id = await self.maps.create_map(db_session, {"title": "Trails", "user_id": "bob"})
        added = await self.service.add_favourite(db_session, "alice", map_id)

        with pytest.raises(NotFoundError):
            await self.service.remove_favourite(db_session, "mallory", added.id)
        assert len(await self.service.list_favourites(db_session, "alice")) == 1

    @pytest.mark.asyncio
    async def test_deleted_map_leaves_favourites(self, db_session):
        map_id = await self.maps.create_map(db_session, {"title": "Short lived", "user_id": "bob"})
        await self.service.add_favourite(db_session, "alice", map_id)

        await self.maps.delete_map(db_session, map_id, "bob")

        assert await self.service.list_favourites(db_session, "alice") == []

    @pytest.mark.asyncio
    async def test_store_failure_raises_persistence_error(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("gone"))
        )
        with pytest.raises(PersistenceError):
            await self.service.list_favourites(mock_db_session, "alice")


class TestUserService:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_unknown_user_is_none(self, db_session):
        assert await self.service.get_user(db_session, "ghost") is None

    @pytest.mark.asyncio
    async def test_get_and_list_users(self, db_session):
        db_session.add_all([
            User(id="2", username="bob", email="bob@example.com"),
            User(id="1", username="alice", first_name="Alice"),
        ])
        await db_session.commit()

        alice = await self.service.get_user(db_session, "1")
        everyone = await self.service.list_users(db_session)

        assert alice.username == "alice"
        assert alice.first_name == "Alice"
        assert alice.email is None
        assert [u.id for u in everyone] == ["1", "2"]

"""Tests for DatabaseManager."""

from pathlib import Path

from sqlalchemy import inspect, text

from juicy.infrastructure.persistence import DatabaseManager

TABLES = {
    "messages",
    "entity_states",
    "chat_summaries",
    "summary_pointers",
    "attachment_summaries",
    "chat_participants",
    "user_contexts",
    "quota_usage",
}


async def table_names(manager: DatabaseManager) -> set[str]:
    async with manager.get_engine().connect() as conn:
        return set(
            await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        )


class TestDatabaseManager:
    """DatabaseManager tests."""

    def test_get_engine_creates_parent_directory(self, tmp_path: Path) -> None:
        """Test that parent directory is created if not exists."""
        db_path = tmp_path / "subdir" / "nested" / "juicy.db"
        manager = DatabaseManager(str(db_path))

        engine = manager.get_engine()

        assert "sqlite" in str(engine.url)
        assert db_path.parent.exists()
        assert manager.get_engine() is engine

    async def test_create_tables(self, tmp_path: Path) -> None:
        """All tables exist and a second call is a no-op."""
        manager = DatabaseManager(str(tmp_path / "juicy.db"))

        await manager.create_tables()
        await manager.create_tables()

        assert TABLES <= await table_names(manager)
        await manager.close()

    async def test_file_database_uses_wal(self, tmp_path: Path) -> None:
        manager = DatabaseManager(str(tmp_path / "juicy.db"))
        await manager.create_tables()

        async with manager.get_engine().connect() as conn:
            result = await conn.execute(text("PRAGMA journal_mode"))
            assert result.scalar() == "wal"
        await manager.close()

    async def test_in_memory_database(self) -> None:
        manager = DatabaseManager(":memory:")
        await manager.create_tables()

        assert manager.is_memory is True
        assert TABLES <= await table_names(manager)

        async with manager.get_session() as session:
            assert session is not None
        await manager.close()

    async def test_unique_constraints(self, tmp_path: Path) -> None:
        manager = DatabaseManager(str(tmp_path / "juicy.db"))
        await manager.create_tables()

        async with manager.get_engine().connect() as conn:
            names = await conn.run_sync(
                lambda sync_conn: {
                    table: {c["name"] for c in inspect(sync_conn).get_unique_constraints(table)}
                    for table in ("attachment_summaries", "chat_participants", "quota_usage")
                }
            )

        assert "uq_attachment_message_index" in names["attachment_summaries"]
        assert "uq_participant_chat_address" in names["chat_participants"]
        assert "uq_quota_user_window" in names["quota_usage"]
        await manager.close()

    async def test_close_disposes_engine(self, tmp_path: Path) -> None:
        manager = DatabaseManager(str(tmp_path / "juicy.db"))
        await manager.create_tables()
        assert manager._engine is not None

        await manager.close()

        assert manager._engine is None
        assert manager._session_factory is None

    async def test_close_without_engine(self) -> None:
        """close does nothing if the engine was never created."""
        manager = DatabaseManager(":memory:")
        await manager.close()
        assert manager._engine is None

"""AsyncSession stand-in for tests that never reach a database."""

from unittest.mock import AsyncMock, MagicMock


class MockSavepoint:
    """Async context manager returned by ``begin_nested()``.

    Records whether the block exited with an exception, i.e. whether a
    real savepoint would have been rolled back.  Exceptions propagate.
    """

    def __init__(self):
        self.entered = False
        self.rolled_back = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.rolled_back = exc_type is not None
        return False


def mock_session():
    """AsyncMock session whose ``begin_nested()`` yields tracked savepoints."""
    db = AsyncMock()
    db.savepoints = []

    def _begin_nested():
        savepoint = MockSavepoint()
        db.savepoints.append(savepoint)
        return savepoint

    db.begin_nested = MagicMock(side_effect=_begin_nested)
    return db

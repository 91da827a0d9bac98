import pytest

from screening_core.catalog import QuestionCatalog


@pytest.fixture(scope="session")
def catalog():
    """Load the bundled question catalogs once for the whole test session."""
    c = QuestionCatalog()
    c.load()
    return c

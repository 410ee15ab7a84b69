"""
Name: Database Pool Unit Tests

Responsibilities:
  - Fail-fast on double init / use before init
  - Idempotent close
  - statement_timeout passed as a libpq option
"""

from unittest.mock import MagicMock, patch

import pytest
from compliance_engine.infrastructure.db import pool as pool_module
from compliance_engine.infrastructure.db.errors import (
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def patched_pool_class():
    with patch.object(pool_module, "ConnectionPool") as pool_class:
        pool_class.return_value = MagicMock()
        yield pool_class
    pool_module.close_pool()


def test_get_pool_before_init_raises():
    pool_module.close_pool()
    with pytest.raises(PoolNotInitializedError):
        pool_module.get_pool()


def test_init_then_get(patched_pool_class):
    created = pool_module.init_pool("postgresql://x", 1, 5, statement_timeout_ms=1000)

    assert pool_module.get_pool() is created
    kwargs = patched_pool_class.call_args.kwargs
    assert kwargs["conninfo"] == "postgresql://x"
    assert kwargs["min_size"] == 1
    assert kwargs["max_size"] == 5
    assert kwargs["open"] is True
    assert kwargs["kwargs"]["options"] == "-c statement_timeout=1000"


def test_double_init_raises(patched_pool_class):
    pool_module.init_pool("postgresql://x", 1, 5)
    with pytest.raises(PoolAlreadyInitializedError):
        pool_module.init_pool("postgresql://x", 1, 5)


def test_close_is_idempotent(patched_pool_class):
    created = pool_module.init_pool("postgresql://x", 1, 5)

    pool_module.close_pool()
    pool_module.close_pool()

    created.close.assert_called_once()
    with pytest.raises(PoolNotInitializedError):
        pool_module.get_pool()


def test_connection_kwargs_set_statement_timeout():
    kwargs = pool_module._connection_kwargs(2500)
    assert kwargs["options"] == "-c statement_timeout=2500"
    assert kwargs["application_name"] == "compliance-engine"


def test_connection_kwargs_without_timeout():
    assert "options" not in pool_module._connection_kwargs(0)

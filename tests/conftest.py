import pytest

from healthflow.cache_manager import result_cache
from healthflow.parameters import Parameters


@pytest.fixture
def params():
    return Parameters()


@pytest.fixture
def congested_params():
    return Parameters(system_congestion=0.9)


@pytest.fixture(autouse=True)
def clear_result_cache():
    result_cache.clear()
    yield
    result_cache.clear()


@pytest.fixture
def client():
    from healthflow.api import app
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


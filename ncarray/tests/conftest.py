import pytest

from ncarray.config import config
from ncarray.dataset import Dataset
from ncarray.tests.util import make_record_layout, make_record_source


@pytest.fixture(autouse=True)
def reset_config():
    config.reset()
    yield
    config.reset()


@pytest.fixture
def record_source():
    return make_record_source()


@pytest.fixture
def record_dataset(record_source):
    dimensions, variables = make_record_layout()
    return Dataset(record_source, dimensions, variables)

import pytest

from gcloud_lite import Dataset, Transaction
from .fake_connection import FakeConnection
from .sample_settings import TEST_DATASET, SampleSettings


@pytest.fixture()
def settings():
    return SampleSettings()


@pytest.fixture()
def connection():
    return FakeConnection()


@pytest.fixture()
def transaction(connection: FakeConnection, settings: SampleSettings):
    return Transaction(connection, TEST_DATASET, settings.datastore_base_url)


@pytest.fixture()
def dataset(connection: FakeConnection, settings: SampleSettings):
    return Dataset(connection=connection, settings=settings)

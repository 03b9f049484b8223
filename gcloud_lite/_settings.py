import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

DATASTORE_BASE_URL = "https://www.googleapis.com/datastore/v1beta2/datasets"
PREDICTION_BASE_URL = "https://www.googleapis.com/prediction/v1.6/projects"
STORAGE_BASE_URL = "https://www.googleapis.com/storage/v1"


class GCloudSettings(BaseSettings):
    """Use environment variables prefixed with GCLOUD_, e.g. GCLOUD_PROJECT_ID"""

    model_config = SettingsConfigDict(env_prefix="GCLOUD_")

    project_id: str = ""
    credentials_file: str | None = None
    datastore_base_url: str = DATASTORE_BASE_URL
    prediction_base_url: str = PREDICTION_BASE_URL
    storage_base_url: str = STORAGE_BASE_URL
    timeout: float = 60.0


def load_settings(**overrides) -> GCloudSettings:
    """settings from the environment, with non-None keyword overrides applied"""
    values = {k: v for k, v in overrides.items() if v is not None}
    settings = GCloudSettings(**values)
    if not settings.project_id:
        logger.debug("no project id configured")
    return settings

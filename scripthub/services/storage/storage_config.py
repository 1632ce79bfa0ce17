"""S3 configuration for screenshot storage"""

from pydantic_settings import BaseSettings


class StorageSettings(BaseSettings):
    """S3 bucket holding screenshot images. Uploads are skipped when BUCKET_NAME is empty."""

    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    BUCKET_NAME: str = ""

    class Config:
        env_prefix = "S3_"

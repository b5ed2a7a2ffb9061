"""TUS protocol client implementations."""

from tus_client.client.base import TusClient
from tus_client.client.stats import UploadStats

__all__ = ["TusClient", "UploadStats"]

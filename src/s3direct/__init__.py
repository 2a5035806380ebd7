"""s3direct - AWS SigV4 signing for talking to S3 without an SDK."""

from s3direct.authorizer import Request, authorize
from s3direct.client import S3Client
from s3direct.config import S3Config, S3DirectConfig, config_from_env, load_config
from s3direct.errors import ConfigurationError, InvalidRequest, S3DirectError, StoreRequestFailed
from s3direct.policy import UploadPolicy, generate_upload_policy
from s3direct.presign import readable_url, verify_readable_url
from s3direct.urls import object_url, s3_host, upload_url_path

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "InvalidRequest",
    "Request",
    "S3Client",
    "S3Config",
    "S3DirectConfig",
    "S3DirectError",
    "StoreRequestFailed",
    "UploadPolicy",
    "authorize",
    "config_from_env",
    "generate_upload_policy",
    "load_config",
    "object_url",
    "readable_url",
    "s3_host",
    "upload_url_path",
    "verify_readable_url",
]

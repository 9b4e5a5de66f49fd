from __future__ import annotations

import os
from enum import Enum
from typing import List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, model_validator


class ConfigurationError(ValueError):
    pass


class DeletionOption(str, Enum):
    """What DynamoDB deletion removes: the whole item, or only the installation attribute."""

    DELETE_ITEM = "DELETE_ITEM"
    DELETE_ATTRIBUTE = "DELETE_ATTRIBUTE"


class EncryptionSettings(BaseModel):
    password: str
    salt: str
    algorithm: str = "aes-256-ctr"
    key_length: int = 32
    iv_length: int = 16


class CodecSettings(BaseModel):
    compression: bool = False
    encryption: Optional[EncryptionSettings] = None


class S3Settings(BaseModel):
    bucket_name: str


class DynamoDbSettings(BaseModel):
    table_name: str
    partition_key_name: str = "PK"
    sort_key_name: str = "SK"
    attribute_name: str = "Installation"
    deletion_option: DeletionOption = DeletionOption.DELETE_ITEM


class StoreSettings(BaseModel):
    client_id: str
    backend: Literal["s3", "dynamodb"] = "s3"
    historical_data_enabled: bool = False
    codec: CodecSettings = Field(default_factory=CodecSettings)
    s3: Optional[S3Settings] = None
    dynamodb: Optional[DynamoDbSettings] = None

    @model_validator(mode="after")
    def validate_backend(self) -> "StoreSettings":
        if self.backend == "s3" and self.s3 is None:
            raise ValueError("s3 settings are required for the s3 backend")
        if self.backend == "dynamodb" and self.dynamodb is None:
            raise ValueError("dynamodb settings are required for the dynamodb backend")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StoreSettings":
        """
        Build settings from environment variables.

        Required:
        - SLACK_CLIENT_ID
        - S3_BUCKET_NAME              (s3 backend)
        - DYNAMODB_TABLE_NAME         (dynamodb backend)

        Optional:
        - INSTALLATION_STORE_BACKEND (default: s3)
        - INSTALLATION_STORE_HISTORICAL_DATA (default: false)
        - INSTALLATION_STORE_COMPRESSION (default: false)
        - INSTALLATION_STORE_ENCRYPTION_PASSWORD / INSTALLATION_STORE_ENCRYPTION_SALT (both or neither;
          the S3_ prefixed names are read when these are unset)
        - DYNAMODB_PARTITION_KEY_NAME, DYNAMODB_SORT_KEY_NAME, DYNAMODB_ATTRIBUTE_NAME,
          DYNAMODB_DELETION_OPTION
        """
        env = os.environ if environ is None else environ
        backend = env.get("INSTALLATION_STORE_BACKEND", "s3").lower()
        if backend not in ("s3", "dynamodb"):
            raise ConfigurationError(f"Unsupported installation store backend: {backend}")

        required = ["SLACK_CLIENT_ID", "S3_BUCKET_NAME" if backend == "s3" else "DYNAMODB_TABLE_NAME"]
        missing = _missing_env(env, required)
        password = _first_env(env, "INSTALLATION_STORE_ENCRYPTION_PASSWORD", "S3_INSTALLATION_STORE_ENCRYPTION_PASSWORD")
        salt = _first_env(env, "INSTALLATION_STORE_ENCRYPTION_SALT", "S3_INSTALLATION_STORE_ENCRYPTION_SALT")
        if password and not salt:
            missing.append("INSTALLATION_STORE_ENCRYPTION_SALT")
        if salt and not password:
            missing.append("INSTALLATION_STORE_ENCRYPTION_PASSWORD")

        if missing:
            joined = ", ".join(missing)
            raise ConfigurationError(f"Missing required environment variables: {joined}")

        encryption = EncryptionSettings(password=password, salt=salt) if password and salt else None
        s3 = S3Settings(bucket_name=env["S3_BUCKET_NAME"]) if backend == "s3" else None
        dynamodb = None
        if backend == "dynamodb":
            option = env.get("DYNAMODB_DELETION_OPTION", "DELETE_ITEM").upper()
            try:
                deletion_option = DeletionOption(option)
            except ValueError as e:
                raise ConfigurationError(f"Unsupported DynamoDB deletion option: {option}") from e
            dynamodb = DynamoDbSettings(
                table_name=env["DYNAMODB_TABLE_NAME"],
                partition_key_name=env.get("DYNAMODB_PARTITION_KEY_NAME", "PK"),
                sort_key_name=env.get("DYNAMODB_SORT_KEY_NAME", "SK"),
                attribute_name=env.get("DYNAMODB_ATTRIBUTE_NAME", "Installation"),
                deletion_option=deletion_option,
            )

        return cls(
            client_id=env["SLACK_CLIENT_ID"],
            backend=backend,
            historical_data_enabled=_flag(env.get("INSTALLATION_STORE_HISTORICAL_DATA")),
            codec=CodecSettings(
                compression=_flag(env.get("INSTALLATION_STORE_COMPRESSION")),
                encryption=encryption,
            ),
            s3=s3,
            dynamodb=dynamodb,
        )


def _missing_env(env: Mapping[str, str], vars_to_check: List[str]) -> List[str]:
    return [name for name in vars_to_check if not env.get(name)]


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _first_env(env: Mapping[str, str], *names: str) -> Optional[str]:
    return next((env[name] for name in names if env.get(name)), None)

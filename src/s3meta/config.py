#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import os
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, ClassVar, Literal

from .aio.interfaces import HTTPClient
from .interfaces.retries import RetryStrategy
from .retries import (
    DEFAULT_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TOTAL_TIMEOUT,
    RetryPolicy,
)

SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_DEFAULT = "default"
SOURCE_IN_CODE_UPDATE = "in_code_update"

SourceType = Literal[
    "constructor",
    "environment",
    "default",
    "in_code_update",
]


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source


class Config:
    """
    Client configuration with precedence-based resolution.

    Values passed to the constructor win over environment variables, which win over
    the defaults. The constructor uses the sentinel value (...) to distinguish "not
    provided" from "explicitly set to None".

    HOW TO ADD A NEW CONFIG FIELD:

    1. Add the parameter to the __init__ method with sentinel default:
       my_field: str | None = ...,  # type: ignore[assignment]

    2. Add it to the CONFIG_FIELDS dictionary:
        "my_field": {
            "default": None,  # required
            "type": str | None,  # required - the expected type for type safety
            "env_var": "MY_ENV_VAR",  # optional environment variable name
            "converter": int,  # optional, applied to environment strings only
            "validator": "_validate_string"  # optional validation method
        }

    3. Add property getter and setter:
       @property
       def my_field(self) -> str | None:
           return self._my_field.value

       @my_field.setter
       def my_field(self, value: str | None) -> None:
           self._my_field = ConfigValue(value, SOURCE_IN_CODE_UPDATE)
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "max_attempts": {
            "env_var": "S3META_MAX_ATTEMPTS",
            "default": DEFAULT_MAX_ATTEMPTS,
            "type": int,
            "converter": int,
            "validator": "_validate_max_attempts",
        },
        "total_attempt_timeout": {
            "env_var": "S3META_TOTAL_ATTEMPT_TIMEOUT",
            "default": DEFAULT_TOTAL_TIMEOUT,
            "type": int | float,
            "converter": float,
            "validator": "_validate_duration",
        },
        "delay_between_attempts": {
            "env_var": "S3META_DELAY_BETWEEN_ATTEMPTS",
            "default": DEFAULT_DELAY,
            "type": int | float,
            "converter": float,
            "validator": "_validate_duration",
        },
        "aws_access_key_id": {
            "env_var": "AWS_ACCESS_KEY_ID",
            "default": None,
            "type": str | None,
        },
        "aws_secret_access_key": {
            "env_var": "AWS_SECRET_ACCESS_KEY",
            "default": None,
            "type": str | None,
        },
        "http_client": {
            "default": None,
            "type": HTTPClient | None,
        },
        "retry_strategy": {
            "default": None,
            "type": RetryStrategy | None,
        },
    }

    def __init__(
        self,
        *,
        max_attempts: int = ...,  # type: ignore[assignment]
        total_attempt_timeout: float = ...,  # type: ignore[assignment]
        delay_between_attempts: float = ...,  # type: ignore[assignment]
        aws_access_key_id: str | None = ...,  # type: ignore[assignment]
        aws_secret_access_key: str | None = ...,  # type: ignore[assignment]
        http_client: HTTPClient | None = ...,  # type: ignore[assignment]
        retry_strategy: RetryStrategy | None = ...,  # type: ignore[assignment]
    ):
        self._constructor_values = {
            k: v for k, v in locals().items() if k != "self" and v is not ...
        }
        self._resolved = False

    @property
    def resolved(self) -> bool:
        """Whether :py:meth:`resolve` has completed."""
        return self._resolved

    async def resolve(
        self,
        *,
        environment_loader: Callable[[], Awaitable[Mapping[str, Any]]] | None = None,
    ) -> None:
        """Resolve configuration from all sources

        Args:
            environment_loader: Custom environment loader function
        """
        if self._resolved:
            raise RuntimeError(
                "Config has already been resolved. Multiple calls to resolve() are not allowed."
            )

        env_values = await (environment_loader or self._load_environment_values)()

        for field_name, field_info in self.CONFIG_FIELDS.items():
            resolved_value = self._resolve_field(
                field_name,
                self._constructor_values,
                env_values,
                field_info["default"],
                field_info.get("validator"),
            )
            setattr(self, f"_{field_name}", resolved_value)

        self._resolved = True

    async def _load_environment_values(self) -> Mapping[str, str]:
        return os.environ

    def _resolve_field(
        self,
        field_name: str,
        constructor_values: dict[str, Any],
        env_values: Mapping[str, Any],
        default_value: Any,
        validator: str | None,
    ) -> ConfigValue:
        field_config = self.CONFIG_FIELDS.get(field_name, {})
        env_var = field_config.get("env_var")

        if field_name in constructor_values:
            value = constructor_values[field_name]
            source = SOURCE_CONSTRUCTOR
        elif env_var and env_var in env_values:
            value = self._convert(field_name, env_values[env_var])
            source = SOURCE_ENVIRONMENT
        else:
            value = default_value
            source = SOURCE_DEFAULT

        expected_type = field_config["type"]
        # Protocol types can't be checked at runtime.
        if not self._is_protocol_type(expected_type) and not isinstance(
            value, expected_type
        ):
            actual_name = type(value).__name__
            expected_name = getattr(expected_type, "__name__", str(expected_type))
            raise TypeError(f"{field_name} must be {expected_name}, got {actual_name}")

        if validator:
            getattr(self, validator)(value, field_name)

        return ConfigValue(value, source)

    def _convert(self, field_name: str, raw: Any) -> Any:
        converter = self.CONFIG_FIELDS[field_name].get("converter")
        if converter is None or not isinstance(raw, str):
            return raw
        try:
            return converter(raw)
        except ValueError as e:
            raise ValueError(
                f"{field_name} could not be read from the environment: {raw!r}"
            ) from e

    def _is_protocol_type(self, type_hint: Any) -> bool:
        """Check if a type hint contains protocol types that can't be runtime checked"""
        if hasattr(type_hint, "__args__"):
            return any(self._is_protocol_type(arg) for arg in type_hint.__args__)
        return getattr(type_hint, "_is_protocol", False)

    def _validate_max_attempts(self, value: Any, field_name: str) -> None:
        if isinstance(value, bool) or value < 1:
            raise ValueError(f"{field_name} must be a positive integer, got {value!r}")

    def _validate_duration(self, value: Any, field_name: str) -> None:
        if isinstance(value, bool) or value < 0:
            raise ValueError(
                f"{field_name} must be a non-negative number of seconds, got {value!r}"
            )

    def get_config_value_object(self, field_name: str) -> ConfigValue:
        """Get the raw ConfigValue object for a field"""
        if not self._resolved:
            raise RuntimeError("Config must be resolved before accessing values")
        return getattr(self, f"_{field_name}")

    @property
    def retry_policy(self) -> RetryPolicy:
        """The attempt budget built from the three retry tunables."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            total_timeout=self.total_attempt_timeout,
            delay=self.delay_between_attempts,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts.value

    @max_attempts.setter
    def max_attempts(self, value: int) -> None:
        self._max_attempts = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def total_attempt_timeout(self) -> float:
        return self._total_attempt_timeout.value

    @total_attempt_timeout.setter
    def total_attempt_timeout(self, value: float) -> None:
        self._total_attempt_timeout = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def delay_between_attempts(self) -> float:
        return self._delay_between_attempts.value

    @delay_between_attempts.setter
    def delay_between_attempts(self, value: float) -> None:
        self._delay_between_attempts = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def aws_access_key_id(self) -> str | None:
        return self._aws_access_key_id.value

    @aws_access_key_id.setter
    def aws_access_key_id(self, value: str | None) -> None:
        self._aws_access_key_id = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def aws_secret_access_key(self) -> str | None:
        return self._aws_secret_access_key.value

    @aws_secret_access_key.setter
    def aws_secret_access_key(self, value: str | None) -> None:
        self._aws_secret_access_key = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def http_client(self) -> HTTPClient | None:
        return self._http_client.value

    @http_client.setter
    def http_client(self, value: HTTPClient | None) -> None:
        self._http_client = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def retry_strategy(self) -> RetryStrategy | None:
        return self._retry_strategy.value

    @retry_strategy.setter
    def retry_strategy(self, value: RetryStrategy | None) -> None:
        self._retry_strategy = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

"""Configuration for the LDAP query node.

The node is configured by a YAML file, normally supplied by the deployment
that hosts the authentication tree. The admin bind password may instead be
injected through the ``LDAPQUERY_ADMIN_PASSWORD`` environment variable, which
takes precedence over the file.

Order of fields in the configuration model matches the order in which the
settings are presented to administrators, which is also recorded in the
``order`` key of each field's JSON schema.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self, override

import yaml
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging

from .models.enums import HeartbeatTimeUnit, LDAPConnectionMode, SearchScope

__all__ = ["CamelCaseSettings", "EnvFirstSettings", "LDAPQueryConfig"]


class CamelCaseSettings(BaseSettings):
    """Settings read from the node's camel-case YAML configuration.

    Unknown keys are rejected, and the node's settings cannot change after
    the file is loaded.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )


class EnvFirstSettings(CamelCaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables over arguments to the class constructor.
    """

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Allow environment
        variables to override init parameters, since init parameters come
        from the YAML configuration file.
        """
        return (env_settings, init_settings)


def _order(order: int) -> dict[str, Any]:
    return {"order": order}


class LDAPQueryConfig(EnvFirstSettings):
    """Configuration for the LDAP query node."""

    primary_servers: list[str] = Field(
        ...,
        title="Primary LDAP servers",
        description=(
            "LDAP servers to query, as ``host`` or ``host:port``, tried in"
            " order"
        ),
        min_length=1,
        json_schema_extra=_order(100),
    )

    secondary_servers: list[str] = Field(
        [],
        title="Secondary LDAP servers",
        description=(
            "LDAP servers to query if none of the primary servers can be"
            " reached"
        ),
        json_schema_extra=_order(200),
    )

    ldap_connection_mode: LDAPConnectionMode = Field(
        LDAPConnectionMode.ldap,
        title="LDAP connection mode",
        description=(
            "Whether to connect in cleartext (``ldap``), over TLS"
            " (``ldaps``), or in cleartext upgraded with StartTLS"
            " (``start_tls``)"
        ),
        json_schema_extra=_order(300),
    )

    trust_all_server_certificates: bool = Field(
        False,
        title="Trust all server certificates",
        description="If true, do not verify the LDAP server certificate",
        json_schema_extra=_order(400),
    )

    account_search_base_dn: list[str] = Field(
        ...,
        title="Base DN for user lookups",
        description=(
            "Components of the base DN of the user search, joined with commas"
        ),
        min_length=1,
        json_schema_extra=_order(500),
    )

    admin_dn: str = Field(
        ...,
        title="Bind DN",
        description="DN of the user to bind as before searching",
        min_length=1,
        json_schema_extra=_order(600),
    )

    admin_password: SecretStr = Field(
        ...,
        title="Bind password",
        description="Password for the simple bind as ``adminDn``",
        validation_alias=AliasChoices(
            "LDAPQUERY_ADMIN_PASSWORD", "adminPassword"
        ),
        json_schema_extra=_order(700),
    )

    search_filter_attributes: list[str] = Field(
        ...,
        title="Search attributes for users",
        description=(
            "Attributes matched against the username. If more than one is"
            " given, a match on any of them finds the user."
        ),
        min_length=1,
        json_schema_extra=_order(800),
    )

    user_profile_attribute: str = Field(
        ...,
        title="User profile naming attribute",
        description="Attribute naming the user entry, usually ``uid``",
        min_length=1,
        json_schema_extra=_order(900),
    )

    user_search_filter: str | None = Field(
        None,
        title="User search filter",
        description=(
            "Filter combined with the username match, replacing the default"
            " of ``(objectClass=*)``"
        ),
        json_schema_extra=_order(1000),
    )

    save_to_shared_state: bool = Field(
        False,
        title="Save attributes to shared state",
        description=(
            "If true, copy the attributes in ``attributesToSave`` from the"
            " user entry into the shared state when the user is found"
        ),
        json_schema_extra=_order(1100),
    )

    attributes_to_save: list[str] = Field(
        [],
        title="Attributes to save",
        description="Attributes of the user entry to retrieve",
        json_schema_extra=_order(1200),
    )

    search_scope: SearchScope = Field(
        SearchScope.subtree,
        title="Search scope",
        description="Breadth of the user search below the base DN",
        json_schema_extra=_order(1300),
    )

    heartbeat_interval: int = Field(
        10,
        title="Heartbeat interval",
        description="Interval between connection heartbeats",
        ge=0,
        json_schema_extra=_order(1400),
    )

    heartbeat_time_unit: HeartbeatTimeUnit = Field(
        HeartbeatTimeUnit.seconds,
        title="Heartbeat time unit",
        description="Unit of ``heartbeatInterval``",
        json_schema_extra=_order(1500),
    )

    ldap_operations_timeout: int = Field(
        0,
        title="LDAP operations timeout",
        description=(
            "Timeout in seconds for connecting to and searching the LDAP"
            " server, or 0 for no timeout"
        ),
        ge=0,
        json_schema_extra=_order(1600),
    )

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Logging level",
        description="Python logging level",
    )

    log_profile: Profile = Field(
        Profile.production,
        title="Logging profile",
        description=(
            "Logging profile: ``production`` for JSON logs, ``development``"
            " for human-readable logs"
        ),
    )

    @field_validator(
        "primary_servers",
        "secondary_servers",
        "account_search_base_dn",
        "search_filter_attributes",
        "attributes_to_save",
    )
    @classmethod
    def _validate_set(cls, v: list[str]) -> list[str]:
        """Reject blank entries and drop duplicates, preserving order."""
        result: list[str] = []
        for value in (e.strip() for e in v):
            if not value:
                raise ValueError("entries must not be empty")
            if value not in result:
                result.append(value)
        return result

    @field_validator("admin_dn", "user_profile_attribute")
    @classmethod
    def _validate_required_string(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("admin_password")
    @classmethod
    def _validate_admin_password(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("must not be empty")
        return v

    @field_validator("user_search_filter")
    @classmethod
    def _validate_user_search_filter(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not (v.startswith("(") and v.endswith(")")):
            v = f"({v})"
        return v

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a configuration object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        LDAPQueryConfig
            The corresponding configuration.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f) or {})

    def configure_logging(self) -> None:
        """Configure logging based on the configuration."""
        configure_logging(
            name="ldapquery",
            profile=self.log_profile,
            log_level=self.log_level,
            add_timestamp=True,
        )

    def summary(self) -> dict[str, Any]:
        """Summarize the configuration for diagnostics.

        Only settings that are safe to log are included. The bind DN and
        password are omitted.
        """
        return {
            "primary_servers": self.primary_servers,
            "secondary_servers": self.secondary_servers,
            "connection_mode": self.ldap_connection_mode.value,
            "trust_all": self.trust_all_server_certificates,
            "base_dn": ",".join(self.account_search_base_dn),
            "search_attributes": self.search_filter_attributes,
            "naming_attribute": self.user_profile_attribute,
            "search_filter": self.user_search_filter,
            "search_scope": self.search_scope.value,
            "save_to_shared_state": self.save_to_shared_state,
            "attributes_to_save": self.attributes_to_save,
            "heartbeat_interval": self.heartbeat_interval,
            "heartbeat_time_unit": self.heartbeat_time_unit.value,
            "operation_timeout": self.ldap_operations_timeout,
        }

"""Configuration models for the cleaner and space monitor.

This module defines the Pydantic models representing config.toml.
The camelCase keys of the legacy JSON config layout are accepted as
aliases so existing deployments can be loaded unchanged.
"""

from typing import Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class RetentionRule(BaseModel):
    """A retention rule for one group prefix inside a repository.

    Attributes:
        group: Group prefix matched against a component's group field.
        min_age: Minimum idle age (e.g., "90d"); empty uses the repository default.
        min_files: Minimum number of files kept per group; 0 uses the repository default.
        group_files_by: Separator splitting names into sub-groups; empty means one group.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    group: Annotated[str, Field(description="Group prefix to match")]
    min_age: Annotated[
        str,
        Field(
            validation_alias=AliasChoices("min_age", "minAge"),
            description="Minimum idle age before expiry",
        ),
    ] = ""
    min_files: Annotated[
        int,
        Field(
            validation_alias=AliasChoices("min_files", "minFiles"),
            description="Minimum files kept per group",
        ),
    ] = 0
    group_files_by: Annotated[
        str,
        Field(
            validation_alias=AliasChoices("group_files_by", "groupFilesBy"),
            description="Name separator for sub-grouping",
        ),
    ] = ""


class RepositoryConfig(BaseModel):
    """Cleanup settings for one remote repository.

    Attributes:
        name: Name of the repository on the server.
        min_age: Default minimum idle age for rules without their own.
        min_files: Default minimum file count for rules without their own.
        rules: Ordered retention rules.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[
        str,
        Field(
            validation_alias=AliasChoices("name", "nxRepository"),
            min_length=1,
            description="Repository name",
        ),
    ]
    min_age: Annotated[
        str,
        Field(validation_alias=AliasChoices("min_age", "minAge"), description="Default min age"),
    ] = "90d"
    min_files: Annotated[
        int,
        Field(
            validation_alias=AliasChoices("min_files", "minFiles"),
            description="Default min files",
        ),
    ] = 5
    rules: Annotated[
        list[RetentionRule],
        Field(
            default_factory=list,
            validation_alias=AliasChoices("rules", "nxRules"),
            description="Retention rules",
        ),
    ]


class VolumeConfig(BaseModel):
    """A storage target watched by the space monitor.

    Exactly one target is consulted per check: the mountpoint when it is
    set, the blob store otherwise.

    Attributes:
        mountpoint: Local mount point path.
        blobstore: Remote blob store name.
        min_free_size: Minimum free space in MiB.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    mountpoint: Annotated[str | None, Field(description="Local mount point")] = None
    blobstore: Annotated[str | None, Field(description="Remote blob store name")] = None
    min_free_size: Annotated[
        int,
        Field(
            validation_alias=AliasChoices("min_free_size", "minFreeSize"),
            ge=0,
            description="Minimum free space in MiB",
        ),
    ]

    @model_validator(mode="after")
    def validate_target(self) -> "VolumeConfig":
        """Validate that a mountpoint or a blob store is configured."""
        if not self.mountpoint and not self.blobstore:
            msg = "Volume needs a mountpoint or a blobstore"
            raise ValueError(msg)
        return self

    @property
    def label(self) -> str:
        """Human-readable name of the consulted target."""
        if self.mountpoint:
            return f"mount:{self.mountpoint}"
        return f"blobstore:{self.blobstore}"


class CleanerConfig(BaseModel):
    """Complete cleaner configuration.

    Attributes:
        server_url: Base URL of the Nexus server.
        repositories: Repositories to scan, in order.
        volumes: Storage targets for the space monitor.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    server_url: Annotated[
        str,
        Field(
            validation_alias=AliasChoices("server_url", "serverUrl"),
            description="Nexus server base URL",
        ),
    ] = ""
    repositories: Annotated[
        list[RepositoryConfig],
        Field(default_factory=list, description="Repositories to clean"),
    ]
    volumes: Annotated[
        list[VolumeConfig],
        Field(default_factory=list, description="Volumes to monitor"),
    ]

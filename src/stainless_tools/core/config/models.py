"""
Configuration data models for stainless-tools.

These models define the structure of ``stainless-tools.json`` / ``.yaml`` and
``~/.config/stainless-tools/config.json`` files, with validation and type
safety via Pydantic.

Keys may be written in snake_case (``open_api_file``) or camelCase
(``openApiFile``); both map to the same field.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from stainless_tools.core.git.urls import is_valid_git_url


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SdkRepoUrls(_ConfigModel):
    """
    Repository URLs for one SDK.

    At least one of staging or prod must be defined.
    """
    staging: Optional[str] = Field(
        default=None,
        description="Staging SDK repository URL (used unless --prod is given)"
    )
    prod: Optional[str] = Field(
        default=None,
        description="Production SDK repository URL"
    )

    @field_validator("staging", "prod")
    @classmethod
    def validate_git_url(cls, v: Optional[str]) -> Optional[str]:
        """Reject URLs that are not SSH or HTTP(S) git URLs ending in .git."""
        if v is not None and not is_valid_git_url(v):
            raise ValueError(f"Invalid git URL: {v}")
        return v

    @model_validator(mode="after")
    def require_one_url(self) -> "SdkRepoUrls":
        if not self.staging and not self.prod:
            raise ValueError("At least one of staging or prod must be defined")
        return self

    def url_for(self, mode: str) -> Optional[str]:
        """URL for ``"staging"`` or ``"prod"``."""
        return self.prod if mode == "prod" else self.staging


class DefaultsConfig(_ConfigModel):
    """
    Default values for command options.

    Every field can be overridden by the matching CLI flag.
    """
    branch: Optional[str] = Field(
        default=None,
        description="SDK branch to track"
    )
    target_dir: Optional[str] = Field(
        default=None,
        description="Clone location; supports {sdk}, {env} and {branch}"
    )
    open_api_file: Optional[str] = Field(
        default=None,
        description="Path to the OpenAPI specification"
    )
    stainless_config_file: Optional[str] = Field(
        default=None,
        description="Path to the Stainless configuration"
    )
    project_name: Optional[str] = Field(
        default=None,
        description="Stainless project name"
    )
    guess_config: bool = Field(
        default=False,
        description="Ask Stainless to guess configuration from the spec"
    )


class LifecycleCommands(_ConfigModel):
    """Shell commands run at lifecycle points for one SDK."""
    post_clone: Optional[str] = Field(
        default=None,
        description="Runs once after the SDK repository is first cloned"
    )
    post_update: Optional[str] = Field(
        default=None,
        description="Runs after every successful pull"
    )
    pre_publish_spec: Optional[str] = Field(
        default=None,
        description="Runs before specs are published to Stainless"
    )


class StainlessToolsConfig(_ConfigModel):
    """
    Top-level stainless-tools configuration.

    Example:
        >>> config = StainlessToolsConfig(
        ...     sdk_repos={
        ...         "python": {"staging": "git@github.com:stainless-sdks/acme-python.git"},
        ...     },
        ...     defaults=DefaultsConfig(project_name="acme"),
        ... )
        >>> config.sdk_repos["python"].url_for("staging")
        'git@github.com:stainless-sdks/acme-python.git'
    """
    sdk_repos: dict[str, SdkRepoUrls] = Field(
        alias="stainlessSdkRepos",
        description="SDK name -> repository URLs"
    )
    defaults: DefaultsConfig = Field(
        default_factory=DefaultsConfig,
        description="Default command options"
    )
    lifecycle: dict[str, LifecycleCommands] = Field(
        default_factory=dict,
        description="SDK name -> lifecycle commands"
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds between checks for new SDK commits"
    )

    @field_validator("sdk_repos", mode="before")
    @classmethod
    def validate_sdk_repos(cls, v: Any) -> Any:
        """Treat a bare URL string as the staging URL."""
        if isinstance(v, dict):
            return {
                name: {"staging": urls} if isinstance(urls, str) else urls
                for name, urls in v.items()
            }
        return v

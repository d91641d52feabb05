"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (CATALOGSEARCH_ prefix)
  3. Default values

Settings are read once at startup to build the OpenSearch client, the
engine facade and its indexers; they are not re-read at runtime.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class AuthSettings(BaseModel):
    """OpenSearch authentication."""

    type: Literal["none", "basic", "aws"] = Field(default="none", description="Authentication mode")
    username: str | None = Field(default=None, description="Username for basic auth")
    password: str | None = Field(default=None, description="Password for basic auth")
    region: str | None = Field(default=None, description="AWS region for SigV4 auth")


class SSLSettings(BaseModel):
    """TLS options for the OpenSearch connection."""

    verify_hostname: bool = Field(default=True, description="Verify server certificates")
    ca: str | None = Field(default=None, description="Custom CA certificate (PEM content)")


class FacetConfig(BaseModel):
    """A terms aggregation returned as a facet group."""

    name: str = Field(description="Facet group name in the query result")
    field: str = Field(description="Document field to aggregate on")
    size: int = Field(default=20, gt=0, description="Maximum number of buckets")
    missing: str = Field(default="N/A", description="Bucket label for documents lacking the field")


def _default_facets() -> list[FacetConfig]:
    return [
        FacetConfig(name="kinds", field="kind", size=20, missing="Unknown"),
        FacetConfig(name="lifecycles", field="lifecycle", size=10, missing="N/A"),
        FacetConfig(name="namespaces", field="namespace", size=20, missing="default"),
        FacetConfig(name="owners", field="owner", size=20, missing="N/A"),
    ]


class OpenSearchSettings(BaseModel):
    """OpenSearch backend configuration."""

    endpoint: list[str] = Field(default=["http://localhost:9200"], description="OpenSearch node URLs")
    auth: AuthSettings = Field(default_factory=AuthSettings)
    ssl: SSLSettings = Field(default_factory=SSLSettings)
    index_prefix: str = Field(default="backstage", min_length=1, description="Prefix of every physical index")
    batch_size: int = Field(default=100, gt=0, description="Documents per bulk write")
    max_concurrency: int = Field(default=5, gt=0, description="Max concurrent bulk writes per engine")
    excluded_kind: str = Field(default="Location", description="Entity kind never returned by queries")
    default_page_limit: int = Field(default=25, gt=0, description="Page size when a query sets none")
    facets: list[FacetConfig] = Field(default_factory=_default_facets, description="Facet aggregations")

    @field_validator("endpoint", mode="before")
    @classmethod
    def _parse_endpoint(cls, v: Any) -> list[str]:
        """Parse the endpoint from a JSON string (env var), a plain URL or a list."""
        if isinstance(v, str):
            import json

            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(h) for h in parsed]
            except (json.JSONDecodeError, TypeError):
                pass
            return [v] if v else []
        return list(v)

    @model_validator(mode="after")
    def _check_auth(self) -> OpenSearchSettings:
        if self.auth.type == "basic" and not (self.auth.username and self.auth.password):
            raise ValueError("basic auth requires both username and password")
        if self.auth.type == "aws" and not self.auth.region:
            raise ValueError("aws auth requires a region")
        return self


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the CATALOGSEARCH_ prefix.
    Nested settings use double underscores: CATALOGSEARCH_OPENSEARCH__BATCH_SIZE=500

    Example:
        CATALOGSEARCH_SERVER__PORT=9090
        CATALOGSEARCH_OPENSEARCH__ENDPOINT=https://search.internal:9200
        CATALOGSEARCH_OPENSEARCH__AUTH__TYPE=basic
    """

    model_config = {
        "env_prefix": "CATALOGSEARCH_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="catalogsearch", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    server: ServerSettings = Field(default_factory=ServerSettings)
    opensearch: OpenSearchSettings = Field(default_factory=OpenSearchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Keys present in the file take precedence over environment variables;
        anything the file leaves out still comes from the environment.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

"""OpenSearch client construction.

The engine and its indexers never build their own connection: they receive a
client exposing the small surface described by :class:`SearchClient`. In
production that is an ``opensearchpy.AsyncOpenSearch``; tests pass a mock.

Install the AWS extra for SigV4-signed clusters::

    pip install catalogsearch[aws]
"""

from __future__ import annotations

import logging
import ssl
from typing import TYPE_CHECKING, Any, Protocol

from catalogsearch.opensearch.exceptions import ConfigurationError

if TYPE_CHECKING:
    from catalogsearch.config.settings import OpenSearchSettings

logger = logging.getLogger(__name__)


class SearchClient(Protocol):
    """The subset of the async OpenSearch client the core depends on."""

    indices: Any
    cluster: Any

    async def search(self, *, index: str, body: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...

    async def bulk(self, *, body: list[dict[str, Any]], **kwargs: Any) -> dict[str, Any]: ...

    async def delete(self, *, index: str, id: str, **kwargs: Any) -> dict[str, Any]: ...

    async def info(self, **kwargs: Any) -> dict[str, Any]: ...

    async def close(self) -> None: ...


def create_client(settings: OpenSearchSettings) -> Any:
    """Create an ``AsyncOpenSearch`` client from settings.

    Args:
        settings: OpenSearch connection settings.

    Returns:
        An unconnected ``AsyncOpenSearch`` instance.

    Raises:
        ConfigurationError: If the auth settings are incomplete or an optional
            dependency for the selected auth mode is missing.
    """
    from opensearchpy import AsyncOpenSearch

    client_kwargs: dict[str, Any] = {
        "hosts": settings.endpoint,
        "verify_certs": settings.ssl.verify_hostname,
        "ssl_show_warn": False,
    }

    auth = settings.auth
    if auth.type == "basic":
        if not (auth.username and auth.password):
            raise ConfigurationError("Basic auth requires a username and a password.")
        client_kwargs["http_auth"] = (auth.username, auth.password)
    elif auth.type == "aws":
        client_kwargs["http_auth"] = _aws_auth(auth.region)

    if settings.ssl.ca:
        client_kwargs["ssl_context"] = _ssl_context(settings.ssl.ca, settings.ssl.verify_hostname)

    logger.info(
        "Creating OpenSearch client for %s (auth=%s, verify_certs=%s)",
        ", ".join(settings.endpoint),
        auth.type,
        settings.ssl.verify_hostname,
    )
    return AsyncOpenSearch(**client_kwargs)


def _aws_auth(region: str | None) -> Any:
    """Build a SigV4 signer from the default AWS credential chain."""
    if not region:
        raise ConfigurationError("AWS auth requires a region.")
    try:
        import boto3
    except ImportError as e:
        raise ConfigurationError(
            "boto3 package is required for AWS auth.  Install with: pip install catalogsearch[aws]"
        ) from e
    from opensearchpy import AWSV4SignerAsyncAuth

    credentials = boto3.Session().get_credentials()
    if credentials is None:
        raise ConfigurationError("No AWS credentials found for OpenSearch SigV4 auth.")
    return AWSV4SignerAsyncAuth(credentials, region, "es")


def _ssl_context(ca: str, verify: bool) -> ssl.SSLContext:
    """SSL context trusting a PEM-encoded CA given inline."""
    context = ssl.create_default_context(cadata=ca)
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context

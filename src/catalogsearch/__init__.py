"""catalogsearch — OpenSearch-backed search engine for a software catalog."""

__version__ = "0.1.0"

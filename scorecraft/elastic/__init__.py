"""Elasticsearch-compatible HTTP backend."""

from scorecraft.elastic.client import ElasticsearchClient, parse_hits

__all__ = ["ElasticsearchClient", "parse_hits"]

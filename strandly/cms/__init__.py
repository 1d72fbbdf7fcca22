"""Headless CMS access."""

from strandly.cms.client import CMSClient
from strandly.cms.query import encode_query

__all__ = ["CMSClient", "encode_query"]

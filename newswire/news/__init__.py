"""
News Module
===========

Everything specific to news articles:
- NewsAPI search client
- Hourly ingestion job with deduplication
- Read-only article queries for the API
"""

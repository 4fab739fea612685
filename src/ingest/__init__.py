"""Snapshot diff ingestion.

This package drains paginated diff streams into local page files and
partitions their records into level-keyed buckets.
"""

"""Durable diff outputs.

This package writes the serialized replay log and its batched JSON
translation from the level buckets produced during ingestion.
"""

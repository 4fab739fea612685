"""Core constants used across snapdiff modules.

This module centralizes stream markers, layout names, and defaults.
Keeping values here avoids magic literals in pipeline stages.
"""

from __future__ import annotations

START_COOKIE = "0"
END_OF_BLOCK_MARKER = "EOB"
END_OF_FILE_MARKER = "EOF"
STREAM_MARKERS = (END_OF_BLOCK_MARKER, END_OF_FILE_MARKER)
MARKER_TOKEN_INDEX = 2
LEVEL_OFFSET = 513
READ_CHUNK_SIZE = 16 << 10
RECORD_SEPARATOR = "\t"
OPERATION_SEPARATOR = "_"
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"

RAW_DIR_NAME = "raw"
BUCKETS_DIR_NAME = "parallel_diff"
SERIALIZED_DIFF_FILE_NAME = "serialized_diff"
JSON_DIR_NAME = "serialized_json"
JSON_FILE_SUFFIX = ".json"
LOG_FILE_NAME = "out.log"

DEFAULT_MAX_RETRIES = 10
DEFAULT_RETRY_DELAY_SECONDS = 0.0
DEFAULT_JSON_BATCH_SIZE = 1000

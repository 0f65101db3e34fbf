"""
Upload performance test harness for S3 compatible object stores.

Drives fixed-size object uploads from a pool of concurrent workers for a
bounded time window and records the latency of every successful upload.
"""

__version__ = "0.1.0"

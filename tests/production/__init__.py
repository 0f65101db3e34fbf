"""
Live load tests for the upload harness.

These run the harness against a real S3 compatible service:
- Concurrent independent upload sessions
- Streaming generated object bodies
- Abort behavior on service errors

Skipped unless S3_ENDPOINT is set.
"""

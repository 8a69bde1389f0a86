"""
Infrastructure layer - external service integrations.

- storage: Wasabi (S3-compatible) object storage client and its mock
- metadata: JSON document store over the metadata bucket, its execution
  backends, and the typed repositories built on it

These wrappers translate between stored formats and our document models.
"""

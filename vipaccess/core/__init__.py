"""
Core logic for the content site's persistence layer.

documents/ is framework-agnostic: models, the key scheme and JSON
translation, with no knowledge of S3 or HTTP. bootstrap/ orchestrates the
first-run sequence over the metadata repositories.
"""

"""Multi-resolution WebP derivatives for S3 image uploads."""

__version__ = "0.1.0"

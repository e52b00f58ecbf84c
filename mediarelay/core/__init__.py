"""Configuration, exceptions and the S3 client manager."""

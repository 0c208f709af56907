"""Storage-tier migration and archive restore for S3 object listings."""

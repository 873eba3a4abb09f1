"""Shared pytest configuration."""

import os

# The DynamoDB adapter creates a boto3 resource on import; Lambda always
# provides a region, local test runs may not.
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

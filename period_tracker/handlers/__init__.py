"""
Lambda handlers package for AWS Lambda functions.
"""
from .period import handler

__all__ = ["handler"]

"""
Core catalog logic.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. Storage is reached through a protocol,
so listing and paging rules can be tested in isolation.
"""

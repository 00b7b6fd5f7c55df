"""
S3 Video Streamer - browse a video bucket and stream files via signed URLs.

This package contains the complete application:
- core: Framework-agnostic catalog logic
- infrastructure: Object storage integration
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"

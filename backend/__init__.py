"""
Backend package for the issue tracker's media uploads.

This package provides a FastAPI application that accepts multipart uploads and
forwards them to Cloudinary or Google Drive, depending on which provider is
configured, plus a health endpoint the client probes before uploading.
"""


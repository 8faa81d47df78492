"""
Client-side library for the Fusion issue tracker.

Keeps issues and chat threads in a local key-value store, seeds demo data on
first run, and uploads attachments through the backend with a mock fallback.
"""

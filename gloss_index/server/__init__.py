"""HTTP read endpoint for the gloss video index.

WHY: Front-ends resolve glosses through a small HTTP API instead of
loading the whole index themselves.

HOW: app.py builds the FastAPI application around an eager reader;
models.py defines the response schemas.
"""

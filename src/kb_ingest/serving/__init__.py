"""
Serving — FastAPI application for the ingestion pipeline.

Upstream text extraction posts extracted document text here; the app
chunks, embeds and stores it and answers with a run summary.
"""

"""Ingestion: file discovery, text extraction and chunking."""

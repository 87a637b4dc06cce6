"""Knowledge-base ingestion: bounded, de-duplicated, embedded document chunks."""

__version__ = "0.1.0"

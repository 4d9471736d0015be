"""Pipeline activity functions.

Each activity performs a single unit of work within a pipeline run:
- extract_archive: Count and read CAP document entries from a ZIP buffer
- parse_cap: Extract alert features and polygon geometry from one document
"""

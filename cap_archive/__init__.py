"""CAP Alert Archive Ingestion Pipeline.

Ingests ZIP archives of Common Alerting Protocol (CAP) XML documents,
extracts alert/info/area polygon geometry, and aggregates the results
into an ordered GeoJSON feature collection for map rendering.
"""

__version__ = "0.1.0"

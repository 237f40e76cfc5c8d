"""coordkit: GIS coordinate conversion and GeoJSON tools."""

__version__ = "0.1.0"

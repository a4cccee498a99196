"""Report export package."""

from splitledger.export.exporter import ReportExporter
from splitledger.export.writer import ExportWriter, ensure_directory

__all__ = ["ExportWriter", "ReportExporter", "ensure_directory"]

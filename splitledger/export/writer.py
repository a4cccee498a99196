"""
Export writer

The ledger itself never does file I/O. This is the persistence
collaborator the shell uses to put export text on disk: it makes sure
the target directory exists, then writes both reports.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from splitledger.audit import AuditLogger
from splitledger.config import ExportSettings

if TYPE_CHECKING:
    from splitledger.orchestrator import SplitLedger


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Create the directory if it is absent; no-op if it already exists.

    Raises FileExistsError if the path exists but is not a directory.
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


class ExportWriter:
    """Writes a ledger's CSV and text reports into one directory."""

    def __init__(
        self,
        settings: Optional[ExportSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or ExportSettings()
        self._audit_logger = audit_logger

    @property
    def directory(self) -> Path:
        return Path(self._settings.directory)

    def _write(self, path: Path, text: str) -> Path:
        path.write_text(text, encoding="utf-8")
        if self._audit_logger:
            self._audit_logger.log_export_written(
                path=str(path),
                size=path.stat().st_size,
            )
        return path

    def write_csv(self, ledger: "SplitLedger") -> Path:
        directory = ensure_directory(self.directory)
        return self._write(directory / self._settings.csv_filename, ledger.export_csv())

    def write_txt(self, ledger: "SplitLedger") -> Path:
        directory = ensure_directory(self.directory)
        return self._write(directory / self._settings.txt_filename, ledger.export_txt())

    def write(self, ledger: "SplitLedger") -> dict[str, Path]:
        """Write both formats. Returns {"csv": path, "txt": path}."""
        return {
            "csv": self.write_csv(ledger),
            "txt": self.write_txt(ledger),
        }

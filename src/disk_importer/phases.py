"""Processing phases returned by data sources to the import orchestrator."""

from enum import Enum
from typing import NamedTuple


class ProcessingPhase(Enum):
    """
    Outcome of the last data source operation.

    Each value also names the step the orchestrator should run next:
    TRANSFER_SCRATCH -> ``transfer()``, TRANSFER_DATA_FILE -> ``transfer_file()``,
    CONVERT -> external format conversion, RESIZE -> external resize.
    ERROR is terminal.
    """

    ERROR = "Error"
    TRANSFER_SCRATCH = "TransferScratch"
    TRANSFER_DATA_FILE = "TransferDataFile"
    CONVERT = "Convert"
    RESIZE = "Resize"


class PhaseResult(NamedTuple):
    """Phase reached by an operation, plus the error when that phase is ERROR."""

    phase: ProcessingPhase
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.phase is not ProcessingPhase.ERROR

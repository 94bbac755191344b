"""Problem file readers and result writers."""

from eigensolve.io.readers import (
    CSVReader,
    MatrixReader,
    ProblemDefinition,
    TextFileReader,
    open_reader,
    parse_scalar,
)
from eigensolve.io.writers import (
    ConsoleWriter,
    CSVWriter,
    PlotWriter,
    ResultWriter,
    TextFileWriter,
    create_writer,
    format_scalar,
)

__all__ = [
    # Readers
    "CSVReader",
    "MatrixReader",
    "ProblemDefinition",
    "TextFileReader",
    "open_reader",
    "parse_scalar",
    # Writers
    "CSVWriter",
    "ConsoleWriter",
    "PlotWriter",
    "ResultWriter",
    "TextFileWriter",
    "create_writer",
    "format_scalar",
]

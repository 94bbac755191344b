"""Problem file readers.

File layout (CSV or plain text):

    4, 1, 0
    1, 3, 1
    0, 1, 2
    Algorithm,QRMethod
    MaxIterations,500
    Tolerance,1e-10
    Shift,2.5

Matrix rows come first, one row per line. The parameter section starts at
the first line whose key is a known parameter name (``Algorithm``,
``MaxIterations``, ``Tolerance``, ``Shift``, ``InitialVector``); missing
parameters keep their defaults. Blank lines and lines starting with ``#`` are
ignored.

CSV files separate everything with commas. Text files (``.txt``, ``.dat``)
accept comma or whitespace separated rows and ``name: value``,
``name,value`` or ``name value`` parameters. Complex entries may be written
``1+2j`` or ``1+2i``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

import numpy as np
from loguru import logger

from eigensolve.algorithms.base import Algorithm
from eigensolve.algorithms.parameters import Parameters
from eigensolve.data.scalar_types import ScalarKind, as_matrix, detect_kind, get_spec
from eigensolve.errors import MatrixFormatError, MatrixShapeError

if TYPE_CHECKING:
    from numpy.typing import NDArray


_PARAMETER_KEYS: dict[str, str] = {
    "algorithm": "algorithm",
    "maxiterations": "max_iterations",
    "tolerance": "tolerance",
    "shift": "shift",
    "initialvector": "initial_vector",
}

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class ProblemDefinition:
    """Everything a problem file describes."""

    matrix: NDArray[Any]
    """Validated square matrix."""

    parameters: Parameters
    """Numerical parameters (defaults for keys the file omits)."""

    algorithm: Algorithm
    """Requested algorithm (PowerMethod when the file names none)."""

    scalar_kind: ScalarKind
    """Scalar kind the matrix is solved over."""

    source: Path
    """File the problem was read from."""


class MatrixReader(Protocol):
    """Source of a problem definition."""

    def read(self) -> ProblemDefinition: ...


class _DelimitedReader(ABC):
    """Shared parsing for the line-oriented problem formats."""

    extensions: ClassVar[tuple[str, ...]] = ()
    format_name: ClassVar[str] = ""

    def __init__(self, path: str | Path, kind: ScalarKind | str | None = None) -> None:
        """Initialize reader.

        Args:
            path: Problem file.
            kind: Force the scalar kind; inferred from the entries if None.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            MatrixFormatError: If the extension does not match the format.
        """
        self.path = Path(path)
        if not self.path.is_file():
            raise FileNotFoundError(f"File not found: {self.path}")
        if self.path.suffix.lower() not in self.extensions:
            msg = (
                f"{self.path.name} is not a {self.format_name} file "
                f"(expected {', '.join(self.extensions)})"
            )
            raise MatrixFormatError(msg)
        self.kind = None if kind is None else get_spec(kind).kind

    def read(self) -> ProblemDefinition:
        """Parse the file.

        Raises:
            MatrixFormatError: If the matrix or a parameter value is malformed.
            InvalidParameterError: If a parameter value is out of range.
        """
        logger.debug("Reading {} file {}", self.format_name, self.path)

        matrix_lines: list[tuple[int, str]] = []
        parameter_lines: list[tuple[int, str]] = []
        for lineno, raw in enumerate(self.path.read_text().splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if parameter_lines or self._is_parameter(line):
                parameter_lines.append((lineno, line))
            else:
                matrix_lines.append((lineno, line))

        matrix = self._parse_matrix(matrix_lines)
        settings = self._parse_parameters(parameter_lines)

        algorithm = Algorithm.parse(settings.pop("algorithm", Algorithm.POWER))
        parameters = Parameters(**settings)

        logger.debug(
            "Read {}x{} {} matrix, algorithm {}",
            matrix.shape[0],
            matrix.shape[1],
            detect_kind(matrix).value,
            algorithm.label,
        )
        return ProblemDefinition(
            matrix=matrix,
            parameters=parameters,
            algorithm=algorithm,
            scalar_kind=detect_kind(matrix),
            source=self.path,
        )

    # =========================================================================
    # FORMAT HOOKS
    # =========================================================================

    @abstractmethod
    def _split_row(self, line: str) -> list[str]:
        """Split one matrix row into its entry tokens."""

    @abstractmethod
    def _split_parameter(self, line: str) -> tuple[str, str]:
        """Split one parameter line into (name, value text)."""

    # =========================================================================
    # PARSING
    # =========================================================================

    def _is_parameter(self, line: str) -> bool:
        name, _ = self._split_parameter(line)
        return _normalize_key(name) in _PARAMETER_KEYS

    def _parse_matrix(self, lines: list[tuple[int, str]]) -> NDArray[Any]:
        if not lines:
            raise MatrixFormatError(f"No matrix found in {self.path.name}")

        rows = [
            [_parse_number(token, lineno) for token in self._split_row(line)]
            for lineno, line in lines
        ]

        width = len(rows[0])
        for (lineno, _), row in zip(lines, rows, strict=True):
            if len(row) != width:
                msg = f"Line {lineno}: row has {len(row)} entries, expected {width}"
                raise MatrixFormatError(msg)

        try:
            return as_matrix(np.array(rows), self.kind)
        except MatrixShapeError as err:
            raise MatrixFormatError(f"{self.path.name}: {err}") from err

    def _parse_parameters(self, lines: list[tuple[int, str]]) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for lineno, line in lines:
            name, value = self._split_parameter(line)
            key = _PARAMETER_KEYS.get(_normalize_key(name))
            if key is None:
                logger.warning("Line {}: ignoring unknown parameter '{}'", lineno, name)
                continue
            if not value:
                raise MatrixFormatError(f"Line {lineno}: missing value for {name}")

            if key == "algorithm":
                settings[key] = value
            elif key == "max_iterations":
                try:
                    settings[key] = int(value)
                except ValueError as err:
                    msg = f"Line {lineno}: MaxIterations must be an integer, got '{value}'"
                    raise MatrixFormatError(msg) from err
            elif key == "initial_vector":
                settings[key] = np.array(
                    [_parse_number(token, lineno) for token in _split_values(value)]
                )
            else:
                settings[key] = _parse_number(value, lineno)

        return settings


class CSVReader(_DelimitedReader):
    """Comma separated problem file (``.csv``).

    Example:
        >>> problem = CSVReader("problem.csv").read()  # doctest: +SKIP
        >>> problem.algorithm
        <Algorithm.QR: 'qr'>
    """

    extensions = (".csv",)
    format_name = "CSV"

    def _split_row(self, line: str) -> list[str]:
        return [token.strip() for token in line.split(",")]

    def _split_parameter(self, line: str) -> tuple[str, str]:
        name, _, value = line.partition(",")
        return name.strip(), value.strip()


class TextFileReader(_DelimitedReader):
    """Whitespace or comma separated problem file (``.txt``, ``.dat``)."""

    extensions = (".txt", ".dat")
    format_name = "text"

    def _split_row(self, line: str) -> list[str]:
        return _split_values(line)

    def _split_parameter(self, line: str) -> tuple[str, str]:
        if ":" in line:
            name, _, value = line.partition(":")
        elif "," in line:
            name, _, value = line.partition(",")
        else:
            name, _, value = line.partition(" ")
        return name.strip(), value.strip()


def open_reader(path: str | Path, kind: ScalarKind | str | None = None) -> MatrixReader:
    """Pick the reader for ``path`` by its extension.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        MatrixFormatError: If the extension is not .csv, .txt or .dat.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    readers: dict[str, type[_DelimitedReader]] = {
        ext: reader for reader in (CSVReader, TextFileReader) for ext in reader.extensions
    }
    suffix = path.suffix.lower()
    if suffix not in readers:
        msg = f"Unknown file type '{suffix or path.name}'. Supported: {sorted(readers)}"
        raise MatrixFormatError(msg)

    return readers[suffix](path, kind)


# =============================================================================
# INTERNAL HELPERS
# =============================================================================


def _normalize_key(name: str) -> str:
    return name.strip().lower().replace("_", "").replace(" ", "")


def _split_values(text: str) -> list[str]:
    if "," in text:
        return [token.strip() for token in text.split(",") if token.strip()]
    return _WHITESPACE.split(text.strip())


def parse_scalar(token: str) -> float | complex:
    """Parse a real or complex number.

    Accepts Python notation ('2.5', '1+2j') and the 'i' suffix ('1-2i').
    Real tokens are returned as float.

    Raises:
        MatrixFormatError: If ``token`` is not a number.
    """
    text = token.strip().replace(" ", "")
    if text.endswith(("i", "I")) and not text.lower().endswith("inf"):
        text = text[:-1] + "j"

    try:
        return float(text)
    except ValueError:
        pass
    try:
        return complex(text)
    except ValueError as err:
        raise MatrixFormatError(f"cannot parse number '{token}'") from err


def _parse_number(token: str, lineno: int) -> float | complex:
    try:
        return parse_scalar(token)
    except MatrixFormatError as err:
        raise MatrixFormatError(f"Line {lineno}: {err}") from err


__all__ = [
    "CSVReader",
    "MatrixReader",
    "ProblemDefinition",
    "TextFileReader",
    "open_reader",
    "parse_scalar",
]

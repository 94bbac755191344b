"""Tests for problem file readers and result writers."""

import csv
import io
import json
from pathlib import Path

import numpy as np
import pytest
from rich.console import Console

from eigensolve.algorithms.base import Algorithm
from eigensolve.algorithms.matrices import create_rotation_matrix
from eigensolve.algorithms.parameters import DEFAULT_TOLERANCE, Parameters
from eigensolve.algorithms.power_method import PowerMethod
from eigensolve.algorithms.qr_method import QRMethod
from eigensolve.data.scalar_types import ScalarKind
from eigensolve.errors import InvalidParameterError, MatrixFormatError
from eigensolve.io.readers import (
    CSVReader,
    TextFileReader,
    _DelimitedReader,
    open_reader,
    parse_scalar,
)
from eigensolve.io.writers import (
    ConsoleWriter,
    CSVWriter,
    PlotWriter,
    TextFileWriter,
    create_writer,
    format_scalar,
)


def _write(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


class TestCSVReader:
    """Tests for CSVReader."""

    def test_matrix_and_parameters(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "problem.csv",
            "4, 1, 0\n1, 3, 1\n0, 1, 2\n"
            "Algorithm,QRMethod\nMaxIterations,500\nTolerance,1e-9\nShift,2.5\n",
        )
        problem = CSVReader(path).read()

        assert np.array_equal(problem.matrix, [[4, 1, 0], [1, 3, 1], [0, 1, 2]])
        assert problem.algorithm is Algorithm.QR
        assert problem.parameters.max_iterations == 500
        assert problem.parameters.tolerance == 1e-9
        assert problem.parameters.shift == 2.5
        assert problem.scalar_kind is ScalarKind.REAL
        assert problem.source == path

    def test_defaults_without_parameter_section(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "plain.csv", "1,2\n3,4\n")
        problem = CSVReader(path).read()

        assert problem.algorithm is Algorithm.POWER
        assert problem.parameters == Parameters()

    def test_complex_entries(self, tmp_path: Path) -> None:
        """Both 1+2j and 1+2i notations are accepted."""
        path = _write(tmp_path / "complex.csv", "1+2i, 0\n0, 3j\n")
        problem = CSVReader(path).read()

        assert problem.scalar_kind is ScalarKind.COMPLEX
        assert problem.matrix[0, 0] == 1 + 2j
        assert problem.matrix[1, 1] == 3j

    def test_initial_vector_and_complex_shift(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "vector.csv",
            "2,0\n0,1\nAlgorithm,ShiftedInversePowerMethod\nShift,1+1i\nInitialVector,1,0\n",
        )
        problem = CSVReader(path).read()

        assert problem.parameters.shift == 1 + 1j
        assert problem.parameters.initial_vector is not None
        assert np.array_equal(problem.parameters.initial_vector, [1.0, 0.0])

    def test_comments_and_blank_lines(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "comments.csv", "# header\n\n1,0\n\n0,1\n# params\nTolerance,1e-6\n")
        problem = CSVReader(path).read()
        assert problem.matrix.shape == (2, 2)
        assert problem.parameters.tolerance == 1e-6

    def test_forced_complex_kind(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "real.csv", "1,0\n0,1\n")
        problem = CSVReader(path, kind="complex").read()
        assert problem.matrix.dtype == np.complex128
        assert problem.scalar_kind is ScalarKind.COMPLEX

    def test_unknown_parameter_ignored(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "extra.csv", "1,0\n0,1\nAlgorithm,qr\nColor,blue\n")
        problem = CSVReader(path).read()
        assert problem.algorithm is Algorithm.QR
        assert problem.parameters.tolerance == DEFAULT_TOLERANCE


class TestTextFileReader:
    """Tests for TextFileReader."""

    def test_whitespace_rows_and_colon_parameters(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "problem.txt",
            "2 0 0\n0 1 0\n0 0 3\nAlgorithm: ShiftedInversePowerMethod\nShift: 0.9\n",
        )
        problem = TextFileReader(path).read()

        assert np.array_equal(np.diag(problem.matrix), [2.0, 1.0, 3.0])
        assert problem.algorithm is Algorithm.SHIFTED_INVERSE
        assert problem.parameters.shift == 0.9

    def test_comma_rows_and_space_parameters(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "problem.dat",
            "1, 2\n3, 4\nAlgorithm PowerMethod\nTolerance 1e-8\nMaxIterations,25\n",
        )
        problem = TextFileReader(path).read()

        assert problem.parameters.tolerance == 1e-8
        assert problem.parameters.max_iterations == 25
        assert problem.algorithm is Algorithm.POWER

    def test_wrong_extension(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "problem.csv", "1,0\n0,1\n")
        with pytest.raises(MatrixFormatError):
            TextFileReader(path)


class TestReaderErrors:
    """Malformed files are rejected."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            open_reader(tmp_path / "missing.csv")

    def test_unknown_extension(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "problem.xlsx", "1,0\n0,1\n")
        with pytest.raises(MatrixFormatError, match="Unknown file type"):
            open_reader(path)

    def test_inconsistent_rows(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "ragged.csv", "1,2,3\n4,5\n6,7,8\n")
        with pytest.raises(MatrixFormatError, match="Line 2"):
            open_reader(path).read()

    def test_non_square(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "wide.csv", "1,2,3\n4,5,6\n")
        with pytest.raises(MatrixFormatError, match="square"):
            open_reader(path).read()

    def test_bad_number(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "bad.csv", "1,x\n0,1\n")
        with pytest.raises(MatrixFormatError, match="cannot parse"):
            open_reader(path).read()

    def test_no_matrix(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "empty.csv", "Algorithm,qr\n")
        with pytest.raises(MatrixFormatError, match="No matrix"):
            open_reader(path).read()

    def test_bad_max_iterations(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "iters.csv", "1,0\n0,1\nMaxIterations,lots\n")
        with pytest.raises(MatrixFormatError):
            open_reader(path).read()

    def test_unknown_algorithm(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "algo.csv", "1,0\n0,1\nAlgorithm,Jacobi\n")
        with pytest.raises(InvalidParameterError):
            open_reader(path).read()

    def test_invalid_tolerance(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "tol.csv", "1,0\n0,1\nTolerance,-1\n")
        with pytest.raises(InvalidParameterError):
            open_reader(path).read()

    def test_open_reader_picks_by_extension(self, tmp_path: Path) -> None:
        csv_path = _write(tmp_path / "a.csv", "1\n")
        txt_path = _write(tmp_path / "a.txt", "1\n")
        assert isinstance(open_reader(csv_path), CSVReader)
        assert isinstance(open_reader(txt_path), TextFileReader)

    def test_base_reader_is_abstract(self, tmp_path: Path) -> None:
        """The shared reader cannot be used without a concrete format."""
        path = _write(tmp_path / "a.csv", "1\n")
        with pytest.raises(TypeError):
            _DelimitedReader(path)  # type: ignore[abstract]


class TestParseScalar:
    """Tests for parse_scalar."""

    def test_real(self) -> None:
        assert parse_scalar(" 2.5 ") == 2.5
        assert isinstance(parse_scalar("3"), float)

    def test_complex_notations(self) -> None:
        assert parse_scalar("1+2j") == 1 + 2j
        assert parse_scalar("1-2i") == 1 - 2j
        assert parse_scalar("-3i") == -3j

    def test_infinity_is_real(self) -> None:
        assert parse_scalar("-inf") == float("-inf")

    def test_not_a_number(self) -> None:
        with pytest.raises(MatrixFormatError, match="cannot parse number 'abc'"):
            parse_scalar("abc")


class TestWriters:
    """Tests for the result writers."""

    @pytest.fixture
    def real_result(self):
        return PowerMethod().solve(np.diag([1.0, 2.0, 3.0]))

    @pytest.fixture
    def complex_result(self):
        return QRMethod().solve(create_rotation_matrix(np.pi / 3, scale=2.0))

    def test_csv_real(self, tmp_path: Path, real_result) -> None:
        path = tmp_path / "out.csv"
        CSVWriter(path).write(real_result)

        rows = list(csv.reader(path.open()))
        assert rows[0] == ["Eigenvalue", "Iterations", "Converged"]
        assert np.isclose(float(rows[1][0]), 3.0)
        assert rows[1][1] == str(real_result.iterations)
        assert rows[1][2] == "Yes"
        assert rows[3] == ["Eigenvector Components"]
        assert len(rows) == 4 + 3

    def test_csv_complex(self, tmp_path: Path, complex_result) -> None:
        path = tmp_path / "out.csv"
        CSVWriter(path).write(complex_result)

        rows = list(csv.reader(path.open()))
        assert rows[0] == ["Eigenvalue_Real", "Eigenvalue_Imag", "Iterations", "Converged"]
        assert len(rows[1]) == 4
        assert np.isclose(abs(float(rows[1][1])), np.sqrt(3.0))
        assert rows[4] == [
            "Eigenvector1_Real",
            "Eigenvector1_Imag",
            "Eigenvector2_Real",
            "Eigenvector2_Imag",
        ]

    def test_text_report(self, tmp_path: Path, real_result) -> None:
        path = tmp_path / "out.txt"
        TextFileWriter(path).write(real_result)

        text = path.read_text()
        assert "EIGENVALUE COMPUTATION RESULTS" in text
        assert "Convergence Status: CONVERGED" in text
        assert f"Number of Iterations: {real_result.iterations}" in text
        assert "Dominant Eigenvalue: " in text
        assert "v[2] = " in text

    def test_text_report_not_converged(self, tmp_path: Path) -> None:
        result = PowerMethod().solve(
            np.diag([2.0, -2.0, 1.0]), Parameters(max_iterations=5), warn=False
        )
        path = tmp_path / "out.txt"
        TextFileWriter(path).write(result)
        assert "NOT CONVERGED" in path.read_text()

    def test_text_report_complex(self, tmp_path: Path, complex_result) -> None:
        path = tmp_path / "out.txt"
        TextFileWriter(path).write(complex_result)
        text = path.read_text()
        assert "Eigenvalue 1: " in text
        assert "i\n" in text

    def test_plot_json(self, tmp_path: Path, real_result) -> None:
        path = tmp_path / "trace.json"
        PlotWriter(path).write(real_result)

        data = json.loads(path.read_text())
        assert set(data) == {"metadata", "summary", "trace"}
        assert data["metadata"]["algorithm"] == "power"
        assert data["metadata"]["converged"] is True
        assert data["summary"]["iterations"] == real_result.iterations
        assert len(data["trace"]) == real_result.iterations
        assert data["trace"][0]["iteration"] == 1

    def test_console(self, real_result) -> None:
        buffer = io.StringIO()
        ConsoleWriter(Console(file=buffer, width=120)).write(real_result)
        output = buffer.getvalue()
        assert "PowerMethod Results" in output
        assert "Total iterations" in output


class TestCreateWriter:
    """Tests for create_writer factory."""

    def test_console_without_path(self) -> None:
        assert isinstance(create_writer("console"), ConsoleWriter)

    def test_file_formats(self, tmp_path: Path) -> None:
        assert isinstance(create_writer("csv", tmp_path / "a.csv"), CSVWriter)
        assert isinstance(create_writer("TEXT", tmp_path / "a.txt"), TextFileWriter)
        assert isinstance(create_writer("plot", tmp_path / "a.json"), PlotWriter)

    def test_unknown_format(self) -> None:
        with pytest.raises(InvalidParameterError, match="Unknown output format"):
            create_writer("xml", "out.xml")

    def test_file_format_requires_path(self) -> None:
        with pytest.raises(InvalidParameterError):
            create_writer("csv")


class TestFormatScalar:
    """Tests for format_scalar."""

    def test_real(self) -> None:
        assert format_scalar(1.5) == "1.5"

    def test_complex(self) -> None:
        assert format_scalar(1 - 2j) == "1 - 2i"
        assert format_scalar(complex(0.5, 3)) == "0.5 + 3i"

"""
Text format reader and writer for problem and solution files.

Problem file layout::

    <asv count>
    <initial state: x1 y1 x2 y2 ...>
    <goal state: x1 y1 x2 y2 ...>
    <obstacle count>
    <obstacle corners: x1 y1 x2 y2 x3 y3 x4 y4>   (one line per obstacle)

Solution file layout::

    <path length> <declared cost>
    <state: x1 y1 x2 y2 ...>                      (path length lines)

Each obstacle is stored as the axis-aligned bounding box of its corners.
Anything that cannot be turned into these structures raises
``ProblemFormatError`` with the 1-based line number of the offending line;
the validation engine itself never sees malformed input.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .asv_model import ASVConfig, Obstacle, ProblemInstance, SolutionInstance

logger = logging.getLogger(__name__)

OBSTACLE_CORNERS = 4


class ProblemFormatError(ValueError):
    """Raised when a problem or solution file does not match the format."""

    def __init__(self, message: str, line_no: Optional[int] = None) -> None:
        self.line_no = line_no
        if line_no is not None:
            message = f"Line {line_no}: {message}"
        super().__init__(message)


class _Lines:
    """Cursor over the non-blank-terminated lines of a text file."""

    def __init__(self, text: str) -> None:
        lines = text.splitlines()
        while lines and not lines[-1].strip():
            lines.pop()
        self._lines = lines
        self.line_no = 0

    def next(self) -> str:
        if self.line_no >= len(self._lines):
            self.line_no += 1
            raise ProblemFormatError("Line expected, but file ended.", self.line_no)
        line = self._lines[self.line_no].strip()
        self.line_no += 1
        return line

    def remaining(self) -> int:
        return len(self._lines) - self.line_no


def _parse_int(token: str, line_no: int) -> int:
    try:
        return int(token)
    except ValueError:
        raise ProblemFormatError(f"Invalid number format: {token!r}", line_no) from None


def _parse_floats(line: str, count: int, line_no: int) -> List[float]:
    tokens = line.split()
    if len(tokens) < count:
        raise ProblemFormatError(
            f"Not enough tokens - {count} required, found {len(tokens)}", line_no
        )
    if len(tokens) > count:
        raise ProblemFormatError(
            f"Too many tokens - {count} required, found {len(tokens)}", line_no
        )
    values: List[float] = []
    for token in tokens:
        try:
            values.append(float(token))
        except ValueError:
            raise ProblemFormatError(f"Invalid number format: {token!r}", line_no) from None
    return values


def _pairs(values: Sequence[float]) -> Iterator[Tuple[float, float]]:
    return zip(values[0::2], values[1::2])


def parse_configuration(line: str, asv_count: int, line_no: int = 0) -> ASVConfig:
    """Parse one line of ``2 * asv_count`` coordinates into a configuration."""
    values = _parse_floats(line, 2 * asv_count, line_no)
    try:
        return ASVConfig(tuple(_pairs(values)))
    except ValueError as exc:
        raise ProblemFormatError(str(exc), line_no) from exc


def parse_obstacle(line: str, line_no: int = 0) -> Obstacle:
    values = _parse_floats(line, 2 * OBSTACLE_CORNERS, line_no)
    return Obstacle.from_corners(_pairs(values))


def parse_problem(text: str) -> ProblemInstance:
    """Parse the contents of a problem file.

    Raises:
        ProblemFormatError: If the text does not describe a valid problem.
    """
    lines = _Lines(text)
    asv_count = _parse_int(lines.next(), lines.line_no)
    if asv_count < 2:
        raise ProblemFormatError(f"ASV count must be at least 2, got {asv_count}", lines.line_no)
    initial = parse_configuration(lines.next(), asv_count, lines.line_no)
    goal = parse_configuration(lines.next(), asv_count, lines.line_no)
    num_obstacles = _parse_int(lines.next(), lines.line_no)
    if num_obstacles < 0:
        raise ProblemFormatError(
            f"Obstacle count must be non-negative, got {num_obstacles}", lines.line_no
        )
    obstacles = [parse_obstacle(lines.next(), lines.line_no) for _ in range(num_obstacles)]
    if lines.remaining():
        raise ProblemFormatError("Unexpected content after obstacles", lines.line_no + 1)
    return ProblemInstance(
        asv_count=asv_count,
        initial_state=initial,
        goal_state=goal,
        obstacles=tuple(obstacles),
    )


def parse_solution(text: str, asv_count: int) -> SolutionInstance:
    """Parse the contents of a solution file for a problem with ``asv_count`` ASVs.

    Raises:
        ProblemFormatError: If the text does not describe a valid solution.
    """
    lines = _Lines(text)
    header = lines.next().split()
    if len(header) < 2:
        raise ProblemFormatError(
            "Header must contain the path length and the solution cost", lines.line_no
        )
    path_length = _parse_int(header[0], lines.line_no)
    if path_length < 1:
        raise ProblemFormatError(f"Path length must be positive, got {path_length}", lines.line_no)
    try:
        cost = float(header[1])
    except ValueError:
        raise ProblemFormatError(f"Invalid number format: {header[1]!r}", lines.line_no) from None
    path = [parse_configuration(lines.next(), asv_count, lines.line_no) for _ in range(path_length)]
    if lines.remaining():
        raise ProblemFormatError(
            f"More states than the declared path length {path_length}", lines.line_no + 1
        )
    return SolutionInstance(path=tuple(path), declared_cost=cost)


def load_problem(path: Union[str, Path]) -> ProblemInstance:
    """Read and parse a problem file from disk."""
    file_path = Path(path)
    logger.info("Loading problem from %s", file_path)
    problem = parse_problem(file_path.read_text(encoding="utf-8"))
    logger.debug(
        "Loaded problem with %d ASVs and %d obstacle(s)",
        problem.asv_count,
        len(problem.obstacles),
    )
    return problem


def load_solution(path: Union[str, Path], asv_count: int) -> SolutionInstance:
    """Read and parse a solution file from disk."""
    file_path = Path(path)
    logger.info("Loading solution from %s", file_path)
    solution = parse_solution(file_path.read_text(encoding="utf-8"), asv_count)
    logger.debug("Loaded solution with %d state(s)", len(solution.path))
    return solution


def format_configuration(cfg: ASVConfig) -> str:
    """Render a configuration as one line of the text format."""
    return " ".join(f"{x!r} {y!r}" for x, y in cfg.positions)


def format_solution(solution: SolutionInstance) -> str:
    """Render a solution in the text format (direct paths get cost 0)."""
    cost = solution.declared_cost if solution.declared_cost is not None else 0.0
    lines = [f"{len(solution.path)} {cost!r}"]
    lines.extend(format_configuration(cfg) for cfg in solution.path)
    return "\n".join(lines) + "\n"

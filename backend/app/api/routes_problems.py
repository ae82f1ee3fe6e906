"""
Routes for uploaded problem and solution files.

A client uploads a problem text file once, then uploads any number of
solution files against it and validates them by identifier.  The parsed
objects live in the in-memory ``ProblemStore``.  Two read-only endpoints
support viewers: ``frames`` returns the path interpolated for smooth
playback and ``export`` returns the path as CSV.
"""

from __future__ import annotations

import csv
import io
import logging
import math

from fastapi import APIRouter, File, HTTPException, Query, Response, UploadFile

from .models import (
    ConfigurationModel,
    FramesResponse,
    ObstacleModel,
    ProblemInfo,
    ProblemModel,
    SolutionInfo,
    StoredValidateRequest,
    ValidationResponse,
)
from .routes_validation import run_validation
from ..services.asv_model import ASVConfig, Obstacle, SolutionInstance
from ..services.problem_loader import ProblemFormatError, parse_problem, parse_solution
from ..services.problem_store import ProblemEntry, ProblemStore

logger = logging.getLogger(__name__)

router = APIRouter()

# Shared registry of uploaded problems; replaced in tests via the module
# attribute.
problem_store = ProblemStore()

# Maximum number of frames returned by the frames endpoint.  Longer
# playbacks are downsampled.
MAX_FRAMES: int = 5000


async def _read_text(upload: UploadFile) -> str:
    raw = await upload.read()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Uploaded file is not UTF-8 text")


def _get_entry(problem_id: str) -> ProblemEntry:
    entry = problem_store.get_problem(problem_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Problem not found")
    return entry


def _get_solution(problem_id: str, solution_id: str) -> SolutionInstance:
    _get_entry(problem_id)
    solution = problem_store.get_solution(problem_id, solution_id)
    if solution is None:
        raise HTTPException(status_code=404, detail="Solution not found")
    return solution


@router.post("/problems", response_model=ProblemInfo, status_code=201)
async def upload_problem(file: UploadFile = File(...)) -> ProblemInfo:
    """Upload and parse a problem file.

    Raises:
        HTTPException: 400 if the file does not match the problem format.
    """
    text = await _read_text(file)
    try:
        problem = parse_problem(text)
    except ProblemFormatError as exc:
        logger.info("Rejected problem upload %s: %s", file.filename, exc)
        raise HTTPException(status_code=400, detail=f"Invalid problem file: {exc}")
    filename = file.filename or ""
    problem_id = problem_store.add_problem(problem, filename=filename)
    return ProblemInfo(
        problemId=problem_id,
        filename=filename,
        asvCount=problem.asv_count,
        obstacleCount=len(problem.obstacles),
    )


@router.get("/problems/{problem_id}", response_model=ProblemModel)
async def get_problem(problem_id: str) -> ProblemModel:
    return ProblemModel.from_problem(_get_entry(problem_id).problem)


@router.post(
    "/problems/{problem_id}/solutions",
    response_model=SolutionInfo,
    status_code=201,
)
async def upload_solution(problem_id: str, file: UploadFile = File(...)) -> SolutionInfo:
    """Upload and parse a solution file for a stored problem."""
    entry = _get_entry(problem_id)
    text = await _read_text(file)
    try:
        solution = parse_solution(text, entry.problem.asv_count)
    except ProblemFormatError as exc:
        logger.info("Rejected solution upload %s: %s", file.filename, exc)
        raise HTTPException(status_code=400, detail=f"Invalid solution file: {exc}")
    solution_id = problem_store.add_solution(problem_id, solution)
    return SolutionInfo(
        solutionId=solution_id,
        problemId=problem_id,
        pathLength=len(solution.path),
        declaredCost=solution.declared_cost,
    )


@router.post("/problems/{problem_id}/validate", response_model=ValidationResponse)
async def validate_stored(problem_id: str, body: StoredValidateRequest) -> ValidationResponse:
    """Validate a stored solution, or the direct path when none is named."""
    entry = _get_entry(problem_id)
    solution = None
    if body.solutionId is not None:
        solution = _get_solution(problem_id, body.solutionId)
    return run_validation(entry.problem, solution, body.epsilon, body.checks, body.costStrategy)


@router.get(
    "/problems/{problem_id}/solutions/{solution_id}/frames",
    response_model=FramesResponse,
)
async def get_frames(
    problem_id: str,
    solution_id: str,
    resolution: int = Query(1, ge=1, le=1000, description="Frames per path step"),
) -> FramesResponse:
    """Interpolate the stored path for playback.

    Each step between consecutive states is split into ``resolution``
    frames; the final state is always included.  When the frame count
    would exceed ``MAX_FRAMES`` the frames are downsampled evenly.
    """
    entry = _get_entry(problem_id)
    solution = _get_solution(problem_id, solution_id)
    path = solution.path
    # Frame f lies in step f // resolution; only sampled frames are built.
    frame_count = (len(path) - 1) * resolution + 1
    stride = math.ceil(frame_count / MAX_FRAMES) if frame_count > MAX_FRAMES else 1
    frames: list[ASVConfig] = []
    for f in range(0, frame_count - 1, stride):
        i, k = divmod(f, resolution)
        frames.append(path[i].interpolate(path[i + 1], k / resolution))
    frames.append(path[-1])
    extent = entry.problem.workspace_extent(solution)
    return FramesResponse(
        problemId=problem_id,
        solutionId=solution_id,
        resolution=resolution,
        frames=[ConfigurationModel.from_config(f) for f in frames],
        extent=ObstacleModel.from_obstacle(Obstacle(extent)),
    )


@router.get("/problems/{problem_id}/solutions/{solution_id}/export")
async def export_solution(problem_id: str, solution_id: str) -> Response:
    """Export the stored path as CSV, one row per state.

    Columns are ``index`` followed by ``x<i>,y<i>`` for every ASV.
    """
    solution = _get_solution(problem_id, solution_id)
    asv_count = solution.path[0].asv_count
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    header = ["index"]
    for i in range(asv_count):
        header.extend([f"x{i}", f"y{i}"])
    writer.writerow(header)
    for idx, cfg in enumerate(solution.path):
        row: list[object] = [idx]
        for x, y in cfg.positions:
            row.extend([f"{x:.6f}", f"{y:.6f}"])
        writer.writerow(row)
    return Response(content=output.getvalue(), media_type="text/csv")

"""
Pydantic data models for the ASV tester API.

These models define the shapes of requests and responses used by the
backend.  They mirror the immutable service-layer types in
``services/asv_model.py`` and ``services/validation.py`` and provide the
conversion helpers between the two, so route handlers never build
service objects by hand.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..services.asv_model import ASVConfig, Obstacle, ProblemInstance, Rect, SolutionInstance
from ..services.validation import CheckResult, ValidationReport


class Point2D(BaseModel):
    """Single ASV position in workspace coordinates."""

    x: float
    y: float


class ConfigurationModel(BaseModel):
    """Positions of every ASV in chain order."""

    positions: List[Point2D] = Field(..., min_length=2, description="ASV positions in chain order")

    def to_config(self) -> ASVConfig:
        return ASVConfig(tuple((p.x, p.y) for p in self.positions))

    @classmethod
    def from_config(cls, cfg: ASVConfig) -> "ConfigurationModel":
        return cls(positions=[Point2D(x=x, y=y) for x, y in cfg.positions])


class ObstacleModel(BaseModel):
    """Axis-aligned rectangular obstacle."""

    x: float = Field(..., description="Lower-left x coordinate")
    y: float = Field(..., description="Lower-left y coordinate")
    width: float = Field(..., ge=0.0, description="Width of the rectangle")
    height: float = Field(..., ge=0.0, description="Height of the rectangle")

    def to_obstacle(self) -> Obstacle:
        return Obstacle(Rect(self.x, self.y, self.width, self.height))

    @classmethod
    def from_obstacle(cls, obstacle: Obstacle) -> "ObstacleModel":
        r = obstacle.rect
        return cls(x=r.x, y=r.y, width=r.width, height=r.height)


class ProblemModel(BaseModel):
    """A planning problem: chain size, endpoints and obstacles."""

    asvCount: int = Field(..., ge=2, description="Number of ASVs in every configuration")
    initialState: ConfigurationModel
    goalState: ConfigurationModel
    obstacles: List[ObstacleModel] = Field(default_factory=list)

    def to_problem(self) -> ProblemInstance:
        return ProblemInstance(
            asv_count=self.asvCount,
            initial_state=self.initialState.to_config(),
            goal_state=self.goalState.to_config(),
            obstacles=tuple(o.to_obstacle() for o in self.obstacles),
        )

    @classmethod
    def from_problem(cls, problem: ProblemInstance) -> "ProblemModel":
        return cls(
            asvCount=problem.asv_count,
            initialState=ConfigurationModel.from_config(problem.initial_state),
            goalState=ConfigurationModel.from_config(problem.goal_state),
            obstacles=[ObstacleModel.from_obstacle(o) for o in problem.obstacles],
        )


class SolutionModel(BaseModel):
    """A claimed solution path with its declared cost."""

    path: List[ConfigurationModel] = Field(..., description="Ordered configurations of the path")
    declaredCost: Optional[float] = Field(
        default=None,
        description="Cost stated by the solver; omit for a path without a declared cost",
    )

    def to_solution(self) -> SolutionInstance:
        return SolutionInstance(
            path=tuple(c.to_config() for c in self.path),
            declared_cost=self.declaredCost,
        )


class ValidationOptions(BaseModel):
    """Options shared by every validation request."""

    epsilon: Optional[float] = Field(
        default=None, ge=0.0, description="Maximum error for lenient comparisons (default 1e-5)"
    )
    checks: Optional[List[str]] = Field(
        default=None,
        min_length=1,
        description="Check names to run; omitted runs the default batch for the solution",
    )
    costStrategy: Optional[str] = Field(
        default=None, description="Cost strategy used by the 'cost' check"
    )


class ValidateRequest(ValidationOptions):
    """Request body for validating an inline problem and solution."""

    problem: ProblemModel
    solution: Optional[SolutionModel] = Field(
        default=None,
        description="Solution to validate; omitted validates the direct initial-to-goal path",
    )


class StoredValidateRequest(ValidationOptions):
    """Request body for validating a stored solution of a stored problem."""

    solutionId: Optional[str] = Field(
        default=None,
        description="Identifier of an uploaded solution; omitted validates the direct path",
    )


class CheckResultModel(BaseModel):
    """Outcome of one named check."""

    name: str
    passed: bool
    violatingIndices: List[int] = Field(default_factory=list)
    message: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: CheckResult) -> "CheckResultModel":
        return cls(**result.to_dict())


class ValidationResponse(BaseModel):
    """Response returned after validating a path."""

    valid: bool = Field(..., description="Whether every requested check passed")
    epsilon: float = Field(..., description="Maximum error used for the run")
    results: List[CheckResultModel] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: ValidationReport) -> "ValidationResponse":
        return cls(
            valid=report.passed,
            epsilon=report.epsilon,
            results=[CheckResultModel.from_result(report[name]) for name in report],
        )


class ChecksResponse(BaseModel):
    """Names of the available checks and cost strategies."""

    checks: List[str]
    solutionChecks: List[str]
    pointwiseChecks: List[str]
    costStrategies: List[str]
    defaultCostStrategy: str


class ProblemInfo(BaseModel):
    """Metadata returned after a problem file is uploaded."""

    problemId: str = Field(..., description="Unique identifier for the uploaded problem")
    filename: str = Field(..., description="Original filename provided by the client")
    asvCount: int
    obstacleCount: int


class SolutionInfo(BaseModel):
    """Metadata returned after a solution file is uploaded."""

    solutionId: str
    problemId: str
    pathLength: int
    declaredCost: Optional[float] = None


class FramesResponse(BaseModel):
    """Interpolated configurations for playback in a viewer."""

    problemId: str
    solutionId: str
    resolution: int = Field(..., description="Frames generated per path step")
    frames: List[ConfigurationModel]
    extent: ObstacleModel = Field(..., description="Bounding rectangle of everything drawn")

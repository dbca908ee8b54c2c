from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EPSILON = 1e-4
MAX_ITERATIONS = 100
BIG_M = 1e6

Sense = Literal["min", "max"]
Status = Literal["optimal", "unbounded", "max_iterations", "infeasible"]
PivotRule = Literal["dantzig", "bland"]
ArtificialMethod = Literal["big_m", "none"]
VariableKind = Literal["slack", "surplus", "artificial"]
Phase = Literal["initial", "iteration", "unbounded"]
TransportMethod = Literal["northwest_corner", "least_cost", "vogel"]


class ConstraintType(str, Enum):
    LE = "<="
    GE = ">="
    EQ = "="


_CONSTRAINT_ALIASES: Dict[str, str] = {"≤": "<=", "≥": ">=", "==": "="}


class Problem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Sense
    objective: List[float]
    constraints: List[List[float]]
    rhs: List[float]
    constraint_types: List[ConstraintType]

    @field_validator("constraint_types", mode="before")
    @classmethod
    def _normalise_constraint_types(cls, value):
        if isinstance(value, (list, tuple)):
            return [
                _CONSTRAINT_ALIASES.get(item, item) if isinstance(item, str) else item
                for item in value
            ]
        return value

    @property
    def num_variables(self) -> int:
        return len(self.objective)

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)


class SimplexSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    epsilon: float = Field(default=EPSILON, gt=0)
    max_iterations: int = Field(default=MAX_ITERATIONS, ge=1)
    pivot_rule: PivotRule = "dantzig"
    artificial_method: ArtificialMethod = "big_m"
    big_m: float = Field(default=BIG_M, gt=0)


class AuxiliaryVariable(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: VariableKind
    constraint_index: int
    column: int

    @property
    def coefficient(self) -> float:
        return -1.0 if self.kind == "surplus" else 1.0


class StandardForm(BaseModel):
    """Problem widened with auxiliary columns; the objective is always maximised."""

    model_config = ConfigDict(frozen=True)

    original_type: Sense
    num_original_variables: int
    num_variables: int
    num_constraints: int
    objective: List[float]
    constraints: List[List[float]]
    rhs: List[float]
    constraint_types: List[ConstraintType]
    variable_types: List[AuxiliaryVariable]
    slack_count: int
    artificial_count: int
    artificial_method: ArtificialMethod = "big_m"
    negated_rows: List[int] = Field(default_factory=list)

    def artificial_variables(self) -> List[AuxiliaryVariable]:
        return [aux for aux in self.variable_types if aux.kind == "artificial"]

    def column_labels(self) -> List[str]:
        prefixes = {"slack": "s", "surplus": "e", "artificial": "a"}
        labels = [f"x{idx + 1}" for idx in range(self.num_original_variables)]
        for aux in self.variable_types:
            labels.append(f"{prefixes[aux.kind]}{aux.constraint_index + 1}")
        return labels


class IterationRecord(BaseModel):
    iteration: int
    phase: Phase
    tableau: List[List[float]]
    pivot_row: Optional[int] = None
    pivot_col: Optional[int] = None
    pivot_element: Optional[float] = None
    entering_variable: Optional[int] = None
    leaving_variable: Optional[int] = None
    is_optimal: bool = False
    unbounded: bool = False


class Solution(BaseModel):
    """
    Decision-variable values read off the final tableau.
    For `infeasible` and `max_iterations` results `objective_value` is the
    objective evaluated at `variables`, without the big-M penalty still
    held in the tableau.
    """

    variables: List[float]
    objective_value: float
    status: Status


class SimplexResult(BaseModel):
    status: Optional[Status] = None
    solution: Optional[Solution] = None
    iterations: List[IterationRecord] = Field(default_factory=list)
    standard_form: Optional[StandardForm] = None
    error: bool = False
    message: str = ""


class Vertex(BaseModel):
    x: float
    y: float


class VertexEvaluation(BaseModel):
    x: float
    y: float
    z: float


class GraphicStep(BaseModel):
    step: int
    title: str
    vertices: Optional[List[Vertex]] = None
    evaluations: Optional[List[VertexEvaluation]] = None
    optimal_point: Optional[VertexEvaluation] = None


class GraphicResult(BaseModel):
    status: Optional[Status] = None
    vertices: List[Vertex] = Field(default_factory=list)
    evaluations: List[VertexEvaluation] = Field(default_factory=list)
    optimal_point: Optional[VertexEvaluation] = None
    solution: Optional[Solution] = None
    steps: List[GraphicStep] = Field(default_factory=list)
    error: bool = False
    message: str = ""


class TransportationProblem(BaseModel):
    model_config = ConfigDict(frozen=True)

    costs: List[List[float]]
    supply: List[float]
    demand: List[float]


class AllocationStep(BaseModel):
    origin: int
    destination: int
    quantity: float
    cost: float
    remaining_supply: List[float]
    remaining_demand: List[float]
    row_penalties: Optional[List[float]] = None
    column_penalties: Optional[List[float]] = None
    max_penalty: Optional[float] = None


class TransportationResult(BaseModel):
    method: TransportMethod
    allocation: List[List[float]]
    total_cost: float
    steps: List[AllocationStep]

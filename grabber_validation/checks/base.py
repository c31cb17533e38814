"""Base classes for pipeline stages: Stage, StageResult, ValidationError and ErrorCode."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from grabber_validation.logging_config import get_logger

logger = get_logger("checks")


class ErrorCode(str, Enum):
    """Error keywords produced by the validator itself."""

    NOPARAMCHECK = "noparamcheck"
    NOVERSION = "noversion"
    NODESCRIPTION = "nodescription"
    NOCAPABILITIES = "nocapabilities"
    NOBASELINE = "nobaseline"
    NOMANUALCONFIG = "nomanualconfig"
    NOCONFIGURATIONFILE = "noconfigurationfile"
    GRABERROR = "graberror"
    NOTQUIET = "notquiet"
    OUTPUTDIFFERS = "outputdiffers"
    CATERROR = "caterror"
    SORTERROR = "sorterror"
    NOTADDITIVE = "notadditive"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ValidationError:
    """One problem found with the grabber.

    ``code`` is an ErrorCode value, or a keyword passed through verbatim
    from the file validator.
    """

    code: str
    message: str = ""
    stage_id: Optional[str] = None

    def to_dict(self):
        return {"code": str(self.code), "message": self.message, "stage_id": self.stage_id}


@dataclass
class StageResult:
    """Errors found by a stage, and whether the pipeline must stop."""

    errors: List[ValidationError] = field(default_factory=list)
    abort: bool = False

    @classmethod
    def proceed(cls, *errors: ValidationError) -> "StageResult":
        return cls(list(errors), abort=False)

    @classmethod
    def stop(cls, *errors: ValidationError) -> "StageResult":
        return cls(list(errors), abort=True)

    @property
    def codes(self) -> List[str]:
        return [str(e.code) for e in self.errors]


class Stage:
    """A single step of the validation pipeline.

    Subclasses implement ``run(run)`` and return a StageResult. ``run`` is
    the ValidationRun; stages execute commands through it so that every
    command is logged and uncontrolled child signals escalate.
    """

    def __init__(self, stage_id: str, position: int = 0, **params: Any) -> None:
        self.stage_id = stage_id
        self.position = position
        self.params: Dict[str, Any] = params

    def run(self, run) -> StageResult:
        raise NotImplementedError

    def error(self, code, message: str) -> ValidationError:
        """Create a ValidationError for this stage and report it."""
        logger.warning(message, extra={"stage_id": self.stage_id, "code": str(code)})
        return ValidationError(code=str(code), message=message, stage_id=self.stage_id)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.stage_id!r}, position={self.position})"

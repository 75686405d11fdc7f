from dataclasses import dataclass
from typing import List


@dataclass
class StageError:
    stage: str
    message: str

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[StageError]

    @classmethod
    def success(cls):
        return cls(is_valid=True, errors=[])

    @classmethod
    def failure(cls, stage: str, message: str):
        return cls(is_valid=False, errors=[StageError(stage=stage, message=message)])

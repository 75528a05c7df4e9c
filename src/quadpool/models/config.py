"""Configuration models for quadpool.

IntegrationConfig holds the settings of one integration run.
WorkerLimits and OracleSettings are the frozen slices of it that are
shipped to each worker unit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from quadpool.exceptions import ConfigError

TransportKind = Literal["process", "thread"]
SplitMode = Literal["atomic", "legs"]


@dataclass(frozen=True)
class WorkerLimits:
    """Precision guard applied by workers before bisecting a task.

    Attributes:
        max_depth: Tasks at this depth are never split again.
        min_width: Children narrower than this are never produced.
    """

    max_depth: int = 40
    min_width: float = 0.0


@dataclass(frozen=True)
class OracleSettings:
    """Settings for the trapezoid oracle built inside each worker."""

    subdivisions: int = 1000


class IntegrationConfig(BaseModel):
    """Settings for one integration run."""

    model_config = {"frozen": True}

    lower: float
    upper: float
    epsilon: float
    workers: int = Field(default=1, ge=1)
    max_depth: int = Field(default=40, ge=0)
    min_width: float = Field(default=0.0, ge=0.0)
    subdivisions: int = Field(default=1000, ge=1)
    transport: TransportKind = "process"
    split_mode: SplitMode = "atomic"
    strict: bool = False
    record_leaves: bool = False
    poll_interval: float = Field(default=0.5, gt=0.0)
    recv_timeout: Optional[float] = Field(default=None, gt=0.0)
    join_timeout: float = Field(default=5.0, ge=0.0)
    start_method: Optional[str] = None

    @model_validator(mode="after")
    def _check_domain(self) -> IntegrationConfig:
        for name in ("lower", "upper", "epsilon"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
        if self.lower > self.upper:
            raise ValueError(
                f"lower bound {self.lower} exceeds upper bound {self.upper}"
            )
        return self

    @classmethod
    def build(cls, **kwargs: object) -> IntegrationConfig:
        """Validate keyword settings into a config.

        Raises:
            ConfigError: If any setting is missing or invalid.
        """
        try:
            return cls.model_validate(kwargs)
        except ValidationError as e:
            raise ConfigError(f"Invalid integration config: {e}") from e

    @property
    def limits(self) -> WorkerLimits:
        return WorkerLimits(max_depth=self.max_depth, min_width=self.min_width)

    @property
    def oracle_settings(self) -> OracleSettings:
        return OracleSettings(subdivisions=self.subdivisions)

"""
aad_engine configuration.

Scheduling and validation knobs of the backward engine. Every field can be set
from the environment so that a process-wide engine can be tuned without code:

    AAD_ENGINE_NUM_WORKERS=4
    AAD_ENGINE_CHECK_SHAPES=false

Keyword arguments win over the environment; unset variables keep the defaults.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings

ENV_PREFIX = "AAD_ENGINE_"


class EngineConfig(BaseSettings):
    """Configuration for one Engine."""

    # 0: run ready nodes one at a time on the calling thread (FIFO order).
    # >0: run ready nodes on a thread pool of this size.
    num_workers: int = 0

    # Reject fan-in contributions whose shapes differ from what the slot holds.
    check_shapes: bool = True

    model_config = {"env_prefix": ENV_PREFIX}

    @field_validator("num_workers")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"num_workers must be >= 0, got {v}")
        return v

"""
Application settings management.

Settings are loaded from environment variables with .env file support.
The phase configuration table is loaded from YAML. All configuration is
validated using Pydantic.
"""

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from okr_coach.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML configuration files",
    )
    data_dir: Path = Field(
        default=Path("data"), description="Directory for database and other data files"
    )
    logs_dir: Path = Field(default=Path("logs"), description="Directory for log files")

    # ==========================================================================
    # Database
    # ==========================================================================

    database_path: Path = Field(
        default=Path("data/okr_coach.db"), description="Path to SQLite database file"
    )

    # ==========================================================================
    # Coaching
    # ==========================================================================

    forced_progression_turns: int = Field(
        default=10,
        ge=1,
        description="Turns in one phase after which a transition is forced",
    )
    finalization_window: int = Field(
        default=3,
        ge=1,
        description="Number of most recent messages searched for finalization phrases",
    )
    weak_signal_min_messages: int = Field(
        default=5,
        ge=0,
        description="Weak approval phrases only count once the conversation is longer than this",
    )
    score_cache_size: int = Field(
        default=1000, ge=1, description="Maximum entries in the score cache"
    )
    score_cache_ttl_seconds: float = Field(
        default=300.0, gt=0, description="Score cache entry lifetime"
    )
    event_history_size: int = Field(
        default=1000, ge=1, description="Transition events retained in memory"
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")


# ============================================================================
# Phase Configuration (from YAML)
# ============================================================================

RequiredData = Literal["objective", "key_results"]


class PhaseConfig(BaseModel):
    """Static configuration for one conversation phase."""

    description: str = ""
    min_messages: int = Field(default=0, ge=0)
    quality_threshold: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Readiness score needed (0-1)"
    )
    min_data_quality: int = Field(
        default=0, ge=0, le=100, description="Minimum content quality (0-100)"
    )
    timeout_messages: int = Field(
        default=0, ge=0, description="Turns in phase counted as a timeout trigger"
    )
    requires_data: List[RequiredData] = Field(default_factory=list)


class ReadinessConfig(BaseModel):
    """Escape-valve ceilings used by phase readiness evaluation."""

    kr_stuck_turns: int = Field(
        default=6, ge=1, description="kr_discovery turns before moving on regardless"
    )
    kr_min_turns_with_key_result: int = Field(
        default=3,
        ge=1,
        description="kr_discovery turns needed when only one key result exists",
    )
    validation_stuck_turns: int = Field(
        default=12, ge=1, description="validation turns before moving on regardless"
    )


def _default_phases() -> dict:
    return {
        "discovery": PhaseConfig(
            description="Understand business context and capture initial objective",
            min_messages=3,
            quality_threshold=0.6,
            min_data_quality=30,
            timeout_messages=12,
            requires_data=["objective"],
        ),
        "refinement": PhaseConfig(
            description="Refine objective to be outcome-focused and inspiring",
            min_messages=2,
            quality_threshold=0.7,
            min_data_quality=30,
            timeout_messages=10,
            requires_data=["objective"],
        ),
        "kr_discovery": PhaseConfig(
            description="Create measurable key results for the objective",
            min_messages=3,
            quality_threshold=0.6,
            min_data_quality=50,
            timeout_messages=8,
            requires_data=["key_results"],
        ),
        "validation": PhaseConfig(
            description="Review and finalize the complete OKR set",
            min_messages=1,
            quality_threshold=0.7,
            min_data_quality=60,
            timeout_messages=12,
            requires_data=["objective", "key_results"],
        ),
        "completed": PhaseConfig(
            description="OKR finalized",
            min_messages=0,
            quality_threshold=1.0,
            min_data_quality=40,
            timeout_messages=0,
            requires_data=["objective", "key_results"],
        ),
    }


class StateMachineConfig(BaseModel):
    """
    Phase configuration table loaded from state_machine.yaml.

    Phases missing from the YAML keep their built-in defaults; fields missing
    from a configured phase keep that phase's defaults.
    """

    phases: dict[str, PhaseConfig] = Field(default_factory=_default_phases)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)

    @model_validator(mode="before")
    @classmethod
    def merge_with_defaults(cls, data):
        """Merge configured phases over defaults and reject unknown names."""
        if not isinstance(data, dict) or not data.get("phases"):
            return data

        defaults = _default_phases()
        configured = data["phases"]
        if not isinstance(configured, dict):
            return data
        unknown = set(configured) - set(defaults)
        if unknown:
            raise ValueError(f"Unknown phases in configuration: {sorted(unknown)}")

        phases = {}
        for name, default in defaults.items():
            override = configured.get(name) or {}
            if isinstance(override, PhaseConfig):
                override = override.model_dump(exclude_unset=True)
            phases[name] = {**default.model_dump(), **override}
        return {**data, "phases": phases}

    def for_phase(self, phase: str) -> PhaseConfig:
        """Return the configuration for a phase name (or Phase enum member)."""
        return self.phases[str(getattr(phase, "value", phase))]


def load_state_machine_config(config_path: Optional[Path] = None) -> StateMachineConfig:
    """
    Load the phase configuration table from YAML.

    Args:
        config_path: Path to state_machine.yaml. If None, looks in the
            project's config/ directory, then the working directory.

    Returns:
        StateMachineConfig, defaults when no file is found or it is empty

    Raises:
        ConfigurationError: If the file content fails validation
    """
    if config_path is None:
        candidates = [
            Path(__file__).resolve().parent.parent.parent / "config" / "state_machine.yaml",
            Path.cwd() / "config" / "state_machine.yaml",
        ]
        config_path = next((p for p in candidates if p.exists()), None)
        if config_path is None:
            return StateMachineConfig()

    config_path = Path(config_path).resolve()
    if not config_path.exists():
        return StateMachineConfig()

    with open(config_path) as f:
        try:
            config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not config_data:
        return StateMachineConfig()

    try:
        return StateMachineConfig(**config_data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid state machine config {config_path}: {e}") from e


# Global settings instance
settings = Settings()

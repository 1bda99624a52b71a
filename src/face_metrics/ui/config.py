"""
Configuration Management for CLI

Handles configuration file loading, validation, presets and conversion to
the pipeline's parameter objects.
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import yaml
    HAS_YAML = True
except ImportError:
    yaml = None
    HAS_YAML = False

from ..config import (ClassifierThresholds, ExtractorSettings, OrientationWeights,
                      PipelineSettings, QualityWeights)
from ..errors import ContractViolation

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class AppConfig:
    """
    Application configuration settings.

    Pipeline parameters are flattened into plain keys so that a config file
    stays a single flat mapping.
    """

    # Smoothing
    window_size: int = 5
    box_blend: float = 0.7

    # Quality weights
    orientation_weight: float = 0.4
    eye_openness_weight: float = 0.3
    smile_neutrality_weight: float = 0.1
    landmark_coverage_weight: float = 0.2

    # Orientation sub-score
    pitch_weight: float = 0.4
    roll_weight: float = 0.3
    yaw_weight: float = 0.3
    max_orientation_angle: float = 45.0

    # Extractor thresholds
    smile_threshold: float = 0.7
    eyes_open_threshold: float = 0.5
    glasses_eye_threshold: float = 0.5
    full_landmark_count: int = 5
    tracked_confidence: float = 1.0
    untracked_confidence: float = 0.5

    # Status rules
    too_far_range: float = 150.0
    too_close_range: float = 50.0
    max_alignment_angle: float = 20.0
    range_scale: float = 40.0

    # Overlay transform
    mirrored: bool = False
    rotation_degrees: int = 0

    # Logging settings
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppConfig':
        """Create config from dictionary, ignoring unknown keys."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        unknown = sorted(k for k in data if k not in valid_keys)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")
        filtered_data = {k: v for k, v in data.items() if k in valid_keys}

        return cls(**filtered_data)

    def to_pipeline_settings(self) -> PipelineSettings:
        """Build the pipeline parameter objects described by this config."""
        return PipelineSettings(
            window_size=self.window_size,
            box_blend=self.box_blend,
            quality_weights=QualityWeights(
                orientation=self.orientation_weight,
                eye_openness=self.eye_openness_weight,
                smile_neutrality=self.smile_neutrality_weight,
                landmark_coverage=self.landmark_coverage_weight,
            ),
            orientation_weights=OrientationWeights(
                pitch=self.pitch_weight,
                roll=self.roll_weight,
                yaw=self.yaw_weight,
                max_angle=self.max_orientation_angle,
            ),
            extractor=ExtractorSettings(
                smile_threshold=self.smile_threshold,
                eyes_open_threshold=self.eyes_open_threshold,
                glasses_eye_threshold=self.glasses_eye_threshold,
                full_landmark_count=self.full_landmark_count,
                tracked_confidence=self.tracked_confidence,
                untracked_confidence=self.untracked_confidence,
            ),
            thresholds=ClassifierThresholds(
                too_far_range=self.too_far_range,
                too_close_range=self.too_close_range,
                max_alignment_angle=self.max_alignment_angle,
                range_scale=self.range_scale,
            ),
        )

    def validate(self) -> None:
        """
        Validate configuration settings.

        Raises:
            ValueError: If any setting is invalid
        """
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

        if self.rotation_degrees % 90 != 0:
            raise ValueError(
                f"Rotation must be a multiple of 90 degrees (got {self.rotation_degrees})"
            )

        # ContractViolation is a ValueError; re-raise with the config context
        try:
            self.to_pipeline_settings().validate()
        except ContractViolation as e:
            raise ValueError(f"Invalid configuration: {e}") from e


def load_config(config_path: str) -> AppConfig:
    """
    Load configuration from file.

    Args:
        config_path: Path to configuration file (.json or .yaml/.yml)

    Returns:
        AppConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    suffix = config_file.suffix.lower()
    if suffix in ['.yaml', '.yml'] and not HAS_YAML:
        raise ValueError("PyYAML is required for YAML configuration files")
    if suffix not in ['.yaml', '.yml', '.json']:
        raise ValueError(f"Unsupported config file format: {config_file.suffix}")

    parse_errors = (json.JSONDecodeError,) + ((yaml.YAMLError,) if HAS_YAML else ())
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            if suffix == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except parse_errors as e:
        raise ValueError(f"Invalid configuration file format: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a dictionary")

    try:
        config = AppConfig.from_dict(data)
    except TypeError as e:
        raise ValueError(f"Failed to load configuration: {e}") from e
    config.validate()

    logger.info(f"Loaded configuration from: {config_path}")
    return config


def save_config(config: AppConfig, config_path: str, format: str = "yaml") -> None:
    """
    Save configuration to file.

    Args:
        config: AppConfig instance to save
        config_path: Path to save configuration file
        format: File format ("yaml" or "json")

    Raises:
        ValueError: If format is unsupported
    """
    fmt = format.lower()
    if fmt not in ("yaml", "json"):
        raise ValueError(f"Unsupported format: {format}")
    if fmt == "yaml" and not HAS_YAML:
        raise ValueError("PyYAML is required for YAML format")

    config_file = Path(config_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    data = config.to_dict()

    with open(config_file, 'w', encoding='utf-8') as f:
        if fmt == "yaml":
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
        else:
            json.dump(data, f, indent=2)

    logger.info(f"Saved configuration to: {config_path}")


def create_sample_config(output_path: str) -> None:
    """
    Create a sample configuration file with the default settings.

    Written as YAML with a comment header when the suffix is .yaml/.yml,
    otherwise as JSON.

    Args:
        output_path: Path to save sample config
    """
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    data = AppConfig().to_dict()

    with open(output_file, 'w', encoding='utf-8') as f:
        if output_file.suffix.lower() in ['.yaml', '.yml'] and HAS_YAML:
            f.write("# Face Metrics Tool - Configuration File\n")
            f.write("# Quality weights must sum to 1.0; rotation must be a multiple of 90\n\n")
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
        else:
            json.dump(data, f, indent=2)

    logger.info(f"Created sample configuration: {output_path}")


# Configuration presets for different use cases
PRESETS = {
    "balanced": AppConfig(),

    "responsive": AppConfig(
        window_size=2,
        box_blend=0.9,
    ),

    "strict": AppConfig(
        window_size=8,
        box_blend=0.6,
        smile_threshold=0.8,
        eyes_open_threshold=0.6,
        too_far_range=120.0,
        too_close_range=60.0,
        max_alignment_angle=10.0,
    ),
}


def get_preset_config(preset_name: str) -> AppConfig:
    """
    Get configuration preset by name.

    Args:
        preset_name: Name of the preset ("balanced", "responsive", "strict")

    Returns:
        A fresh AppConfig instance for the preset

    Raises:
        ValueError: If preset name is invalid
    """
    if preset_name not in PRESETS:
        available = ", ".join(PRESETS.keys())
        raise ValueError(f"Unknown preset: {preset_name}. Available: {available}")

    return AppConfig.from_dict(PRESETS[preset_name].to_dict())

"""Configuration management for the diagnosis engine.

Two kinds of configuration live here:

- ``DiagnosisSettings``: where to find the question catalog and scoring
  configuration, and how verbosely to log. Looked up from the environment
  and well-known paths, like any other tool setting.
- ``ScoringConfig``: the eight profiles, tie-break orders and message text.
  Loaded once, validated, then handed to the engine explicitly.
"""

import logging
import os
import string
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaValidationError

from .schema import PENALTY_PREFIX, CategoryKey, MessageTemplates, ScoringConfig, VectorKey

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TYPE_DIAGNOSIS_CONFIG"
DEFAULT_SCORING_FILE = "scoring.yaml"

# Placeholders each message template may use
TEMPLATE_FIELDS = {
    "reference_subject": {"name"},
    "strength": {"subject", "category_label", "vector_label", "strength", "strength_suffix"},
    "caution": {"caution"},
    "utilization": {"utilization"},
    "utilization_detail": {"detail"},
    "next_action": {"action"},
}


# =============================================================================
# Tool settings
# =============================================================================


class DiagnosisSettings(BaseModel):
    """Settings for locating data files and logging."""
    questions_path: Optional[Path] = Field(
        None,
        description="Question catalog (JSON or YAML); bundled catalog when unset"
    )
    scoring_path: Optional[Path] = Field(
        None,
        description="Scoring configuration (YAML); bundled configuration when unset"
    )
    log_level: str = Field(
        "WARNING",
        description="Log level for the type_diagnosis logger (DEBUG, INFO, WARNING, ERROR)"
    )


# Global settings instance
_config: Optional[DiagnosisSettings] = None


def get_config() -> DiagnosisSettings:
    """Get the current settings.

    Returns the global settings, initializing with defaults if not yet loaded.
    """
    global _config
    if _config is None:
        _config = DiagnosisSettings()
    return _config


def load_config(path: Path) -> DiagnosisSettings:
    """Load settings from a YAML file.

    Relative data paths are resolved against the settings file's directory.
    """
    global _config

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    settings = DiagnosisSettings.model_validate(data or {})
    base = Path(path).parent
    updates = {}
    for field_name in ("questions_path", "scoring_path"):
        value = getattr(settings, field_name)
        if value is not None and not value.is_absolute():
            updates[field_name] = base / value
    _config = settings.model_copy(update=updates)
    return _config


def reset_config() -> None:
    """Reset settings to defaults."""
    global _config
    _config = DiagnosisSettings()


def find_config_file() -> Optional[Path]:
    """Find a settings file.

    Looks in (order of priority):
    1. TYPE_DIAGNOSIS_CONFIG environment variable
    2. ./diagnosis-config.yaml
    3. ./diagnosis-config.yml
    4. ~/.config/type-diagnosis/config.yaml
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    for name in ["diagnosis-config.yaml", "diagnosis-config.yml"]:
        path = Path(name)
        if path.exists():
            return path

    user_config = Path.home() / ".config" / "type-diagnosis" / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def save_default_config(path: Path) -> None:
    """Save the default settings to a YAML file."""
    data = DiagnosisSettings().model_dump(mode="json")

    yaml_content = """# Type Diagnosis Configuration
# ============================
#
# questions_path: question catalog file (.json/.yaml); null = bundled catalog
# scoring_path:   scoring configuration file (.yaml); null = bundled config
# log_level:      DEBUG, INFO, WARNING or ERROR
#
# Copy this file to one of these locations:
#   - ./diagnosis-config.yaml (current directory)
#   - ~/.config/type-diagnosis/config.yaml (user config)
#
# Or set the TYPE_DIAGNOSIS_CONFIG environment variable.

"""
    yaml_content += yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(yaml_content)


# =============================================================================
# Scoring configuration
# =============================================================================


def validate_scoring_config(config: ScoringConfig) -> list[str]:
    """Check a scoring configuration for structural problems.

    Returns:
        A list of issues; empty when the configuration is usable
    """
    issues = []

    groups = [
        ("category", [p.key for p in config.categories], list(CategoryKey), config.tie_breakers.categories),
        ("vector", [p.key for p in config.vectors], list(VectorKey), config.tie_breakers.vectors),
    ]
    for group, keys, expected, tie_breaker in groups:
        if sorted(keys) != sorted(expected):
            issues.append(
                f"Expected one {group} profile per key {[k.value for k in expected]}, "
                f"got {[k.value for k in keys]}"
            )
        if sorted(tie_breaker) != sorted(expected):
            issues.append(
                f"{group.capitalize()} tie-breaker must list each of "
                f"{[k.value for k in expected]} exactly once"
            )

    for profile in [*config.categories, *config.vectors]:
        for dimension, weight in profile.weights.items():
            if weight < 0:
                issues.append(f"Profile {profile.key.value} has negative weight for {dimension}")
            if dimension.startswith(PENALTY_PREFIX):
                issues.append(
                    f"Profile {profile.key.value} weights penalty dimension {dimension} positively"
                )
        for dimension, weight in profile.penalties.items():
            if weight < 0:
                issues.append(f"Profile {profile.key.value} has negative penalty weight for {dimension}")
            if not dimension.startswith(PENALTY_PREFIX):
                issues.append(
                    f"Profile {profile.key.value} lists non-penalty dimension {dimension} as a penalty"
                )

    issues.extend(validate_message_templates(config.message.templates))

    return issues


def validate_message_templates(templates: MessageTemplates) -> list[str]:
    """Check that every template parses and only uses its own placeholders."""
    issues = []
    formatter = string.Formatter()

    for name, allowed in TEMPLATE_FIELDS.items():
        template = getattr(templates, name)
        try:
            fields = [field for _, field, _, _ in formatter.parse(template) if field is not None]
        except ValueError as e:
            issues.append(f"Message template {name} is malformed: {e}")
            continue
        for field in fields:
            if field not in allowed:
                issues.append(
                    f"Message template {name} uses unknown placeholder '{{{field}}}'; "
                    f"allowed: {sorted(allowed)}"
                )

    return issues


def parse_scoring_config(data: object) -> ScoringConfig:
    """Validate parsed YAML data into a ScoringConfig.

    Raises:
        ValueError: On schema violations or structural issues
    """
    try:
        config = ScoringConfig.model_validate(data or {})
    except SchemaValidationError as e:
        raise ValueError(f"Error validating scoring configuration: {e}") from e

    issues = validate_scoring_config(config)
    if issues:
        raise ValueError("Invalid scoring configuration: " + "; ".join(issues))
    return config


def load_scoring_config(path: Optional[Union[str, Path]] = None) -> ScoringConfig:
    """Load a scoring configuration from YAML.

    Args:
        path: YAML file; None loads the configuration bundled with the package
    """
    if path is None:
        return load_default_scoring_config()

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Scoring configuration not found at {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file {path}: {e}") from e

    config = parse_scoring_config(data)
    logger.info(
        "Loaded scoring configuration from %s (%d categories, %d vectors)",
        path, len(config.categories), len(config.vectors),
    )
    return config


@lru_cache(maxsize=1)
def load_default_scoring_config() -> ScoringConfig:
    """Load the scoring configuration bundled with the package."""
    source = resources.files("type_diagnosis") / "data" / DEFAULT_SCORING_FILE
    with source.open('r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    return parse_scoring_config(data)

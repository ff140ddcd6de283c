"""
Configuration Logger - Centralized config mapping and logging

Single source of truth for configuration variables and their environment
names. Used by the CLI `config` command and at engine start-up.
"""

from typing import Dict, Any, List
from .config import config


def get_all_config_variables() -> Dict[str, Any]:
    """
    Get all configuration variables with their env names and current values.

    Returns:
        Dict mapping env variable names to their current values
    """
    config_map = {
        # Core
        "PAGECRAFT_WORKSPACE": str(config.workspace_dir),
        "PAGECRAFT_DEBUG": config.enable_debug,
        "PAGECRAFT_HEADLESS": config.headless,
        "PAGECRAFT_ACTION_TIMEOUT_MS": config.action_timeout_ms,

        # Analysis thresholds
        "PAGECRAFT_NAV_LINK_THRESHOLD": config.nav_link_threshold,
        "PAGECRAFT_SMALL_FONT_PX": config.small_font_px,
        "PAGECRAFT_WHITESPACE_MIN_PX": config.whitespace_min_px,
        "PAGECRAFT_WORDS_PER_MINUTE": config.words_per_minute,
        "PAGECRAFT_HEADINGLESS_WORDS": config.headingless_word_threshold,

        # Presets
        "PAGECRAFT_SPACING_THRESHOLD_PX": config.spacing_threshold_px,
        "PAGECRAFT_SPACING_REDUCED_PX": config.spacing_reduced_px,
        "PAGECRAFT_READABILITY_FONT_PX": config.readability_font_px,
        "PAGECRAFT_READABILITY_LINE_HEIGHT": config.readability_line_height,
        "PAGECRAFT_TOUCH_TARGET_PX": config.touch_target_px,
        "PAGECRAFT_DIM_OPACITY": config.dim_opacity,
        "PAGECRAFT_HIGHLIGHT_COLOR": config.highlight_color,

        # Templates
        "PAGECRAFT_AUTO_APPLY_DEFAULT": config.auto_apply_default_template,

        # Advice
        "PAGECRAFT_OLLAMA_HOST": config.ollama_host,
        "PAGECRAFT_MODEL": config.ollama_model,
        "PAGECRAFT_LLM_TIMEOUT": config.llm_timeout,
        "PAGECRAFT_TEMPERATURE": config.temperature,
        "PAGECRAFT_NUM_PREDICT": config.num_predict,
    }

    return config_map


def log_all_config(logger) -> None:
    """Log every configuration variable at DEBUG level."""
    for key, value in sorted(get_all_config_variables().items()):
        logger.debug(f"{key}={value}")


def format_config_for_cli() -> List[str]:
    """
    Format configuration for CLI output (`pagecraft config`).

    Returns:
        List of formatted strings for display
    """
    config_vars = get_all_config_variables()
    lines = []

    lines.append("=== Configuration ===")
    for key, value in config_vars.items():
        lines.append(f"{key}: {value}")

    for warning in validate_config():
        lines.append(warning)

    return lines


def validate_config() -> List[str]:
    """
    Validate configuration and return list of warnings.

    Returns:
        List of warning messages (empty if all OK)
    """
    warnings = []
    config_vars = get_all_config_variables()

    if config_vars["PAGECRAFT_WORDS_PER_MINUTE"] <= 0:
        warnings.append("⚠️  PAGECRAFT_WORDS_PER_MINUTE must be positive, falling back to 200")

    if config_vars["PAGECRAFT_SPACING_REDUCED_PX"] >= config_vars["PAGECRAFT_SPACING_THRESHOLD_PX"]:
        warnings.append("⚠️  PAGECRAFT_SPACING_REDUCED_PX is not below PAGECRAFT_SPACING_THRESHOLD_PX, clean preset will not shrink spacing")

    if not 0 <= config_vars["PAGECRAFT_DIM_OPACITY"] <= 1:
        warnings.append("⚠️  PAGECRAFT_DIM_OPACITY should be between 0 and 1")

    if config_vars["PAGECRAFT_LLM_TIMEOUT"] < 30:
        warnings.append("⚠️  PAGECRAFT_LLM_TIMEOUT is very low (<30s), advice requests may time out")

    return warnings


__all__ = [
    "get_all_config_variables",
    "log_all_config",
    "format_config_for_cli",
    "validate_config",
]

#!/usr/bin/env python3
from dataclasses import dataclass
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Config:
    """Application configuration"""
    workspace_dir: Path = Path(os.getenv("PAGECRAFT_WORKSPACE", "./workspace"))
    enable_debug: bool = os.getenv("PAGECRAFT_DEBUG", "false").lower() == "true"
    headless: bool = os.getenv("PAGECRAFT_HEADLESS", "true").lower() == "true"
    action_timeout_ms: int = int(os.getenv("PAGECRAFT_ACTION_TIMEOUT_MS", "30000"))

    # Analysis thresholds
    nav_link_threshold: int = int(os.getenv("PAGECRAFT_NAV_LINK_THRESHOLD", "10"))
    small_font_px: float = float(os.getenv("PAGECRAFT_SMALL_FONT_PX", "12"))
    whitespace_min_px: float = float(os.getenv("PAGECRAFT_WHITESPACE_MIN_PX", "8"))
    words_per_minute: int = int(os.getenv("PAGECRAFT_WORDS_PER_MINUTE", "200"))
    headingless_word_threshold: int = int(os.getenv("PAGECRAFT_HEADINGLESS_WORDS", "150"))

    # Presets
    spacing_threshold_px: float = float(os.getenv("PAGECRAFT_SPACING_THRESHOLD_PX", "100"))
    spacing_reduced_px: float = float(os.getenv("PAGECRAFT_SPACING_REDUCED_PX", "20"))
    readability_font_px: float = float(os.getenv("PAGECRAFT_READABILITY_FONT_PX", "18"))
    readability_line_height: float = float(os.getenv("PAGECRAFT_READABILITY_LINE_HEIGHT", "1.6"))
    touch_target_px: int = int(os.getenv("PAGECRAFT_TOUCH_TARGET_PX", "44"))
    dim_opacity: float = float(os.getenv("PAGECRAFT_DIM_OPACITY", "0.5"))
    highlight_color: str = os.getenv("PAGECRAFT_HIGHLIGHT_COLOR", "#f59e0b")

    # Templates
    auto_apply_default_template: bool = os.getenv("PAGECRAFT_AUTO_APPLY_DEFAULT", "false").lower() in ["true", "1", "yes"]

    # Restructuring advice (optional Ollama endpoint)
    ollama_host: str = os.getenv("PAGECRAFT_OLLAMA_HOST", "http://localhost:11434")
    ollama_model: str = os.getenv("PAGECRAFT_MODEL", "qwen2.5:7b")
    llm_timeout: int = int(os.getenv("PAGECRAFT_LLM_TIMEOUT", "120"))
    temperature: float = float(os.getenv("PAGECRAFT_TEMPERATURE", "0.3"))
    num_predict: int = int(os.getenv("PAGECRAFT_NUM_PREDICT", "512"))

config = Config()

"""
pagecraft_core package: page customization engine

Usage:
    from pagecraft_core import HtmlDocumentBridge, PageCustomizationEngine, TemplateStore, MemoryStorage

    bridge = HtmlDocumentBridge.from_file("saved.html")
    engine = PageCustomizationEngine(bridge, TemplateStore(MemoryStorage()))
    await engine.apply_preset("readability")
"""
from .config import Config, config
from .exceptions import (
    AdviceUnavailable,
    BridgeError,
    DocumentGone,
    NodeDetached,
    PagecraftError,
    RuleValidationError,
    StorageUnavailable,
    TargetNotFound,
    TemplateNotFound,
    UnknownPreset,
)
from .bridge import HtmlDocumentBridge, PageBridge
from .targeting import CustomizationMode, HoverSignal, SelectionSet, TargetingEngine
from .transform import BatchReport, RuleOutcome, TransformationEngine, TransformationRule, make_rule
from .analysis import AnalysisResult, PageAnalyzer, PageSnapshot, Suggestion, SuggestionKind
from .presets import PRESETS, get_preset, list_presets
from .templates import JsonFileStorage, MemoryStorage, Template, TemplateStore
from .advice import RestructuringAdvisor
from .engine import PageCustomizationEngine

__all__ = [
    # Core
    "Config",
    "config",
    "PageCustomizationEngine",
    # Errors
    "AdviceUnavailable",
    "BridgeError",
    "DocumentGone",
    "NodeDetached",
    "PagecraftError",
    "RuleValidationError",
    "StorageUnavailable",
    "TargetNotFound",
    "TemplateNotFound",
    "UnknownPreset",
    # Components
    "HtmlDocumentBridge",
    "PageBridge",
    "CustomizationMode",
    "HoverSignal",
    "SelectionSet",
    "TargetingEngine",
    "BatchReport",
    "RuleOutcome",
    "TransformationEngine",
    "TransformationRule",
    "make_rule",
    "AnalysisResult",
    "PageAnalyzer",
    "PageSnapshot",
    "Suggestion",
    "SuggestionKind",
    "PRESETS",
    "get_preset",
    "list_presets",
    "JsonFileStorage",
    "MemoryStorage",
    "Template",
    "TemplateStore",
    "RestructuringAdvisor",
]

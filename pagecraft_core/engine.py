"""
Page Customization Engine - the surface a UI panel talks to.

One instance per browsing surface: create it when the panel opens, call
on_navigation() when the page changes, close() when the panel goes away.
Selection, hover and the applied-rule list are per document and are dropped
on navigation or reload; templates live in the store.
"""

from typing import Any, List, Optional

from .advice import RestructuringAdvisor
from .analysis.analyzer import AnalysisResult, PageAnalyzer
from .analysis.snapshot import PageSnapshot
from .bridge.base import PageBridge
from .config import config
from .diagnostics import get_logger
from .exceptions import PagecraftError, StorageUnavailable
from .presets import generate
from .targeting.inspector import CustomizationMode, HoverSignal, TargetingEngine
from .templates.store import Template, TemplateStore
from .transform.engine import BatchReport, RuleOutcome, TransformationEngine
from .transform.rules import TransformationRule, renumber

logger = get_logger(__name__)


class PageCustomizationEngine:
    def __init__(self, bridge: PageBridge, store: Optional[TemplateStore] = None,
                 analyzer: Optional[PageAnalyzer] = None, advisor: Optional[RestructuringAdvisor] = None,
                 settings=None):
        self.settings = settings or config
        self.bridge = bridge
        self.store = store
        self.targeting = TargetingEngine(bridge)
        self.transformer = TransformationEngine(bridge)
        self.analyzer = analyzer or PageAnalyzer(self.settings)
        self._advisor = advisor
        self._rules: List[TransformationRule] = []
        self.closed = False

    def _check_open(self) -> None:
        if self.closed:
            raise PagecraftError("Customization engine is closed")

    def _require_store(self) -> TemplateStore:
        if self.store is None:
            raise StorageUnavailable("No template store configured")
        return self.store

    def _append(self, rule: TransformationRule) -> None:
        # a rule id is recorded once, even when it is applied again
        if any(r.id == rule.id for r in self._rules):
            return
        self._rules.append(rule.with_order(len(self._rules)))

    def _record(self, rules: List[TransformationRule], report: BatchReport) -> None:
        applied = set(report.applied_ids)
        for rule in sorted(rules, key=lambda r: r.order_index):
            if rule.id in applied:
                self._append(rule)

    def _discard_transient(self) -> None:
        self.targeting.reset()
        self._rules = []

    # -- modes, hover, selection --------------------------------------------

    @property
    def mode(self) -> CustomizationMode:
        return self.targeting.mode

    def set_mode(self, mode) -> CustomizationMode:
        self._check_open()
        return self.targeting.set_mode(mode)

    def add_hover_listener(self, listener) -> None:
        self.targeting.add_listener(listener)

    def handle_pointer_move(self, locator: Optional[str], tag: Optional[str] = None) -> Optional[HoverSignal]:
        return self.targeting.on_pointer_move(locator, tag)

    def handle_pointer_down(self, locator: Optional[str]) -> Optional[bool]:
        return self.targeting.on_pointer_down(locator)

    async def handle_pointer_event(self, event: dict) -> Any:
        """Callback for PlaywrightBridge.install_pointer_listeners."""
        kind = event.get("kind")
        if kind == "move":
            return self.handle_pointer_move(event.get("locator"), event.get("tag"))
        if kind == "down":
            return self.handle_pointer_down(event.get("locator"))
        return None

    def get_selection(self) -> List[str]:
        return self.targeting.selection.as_list()

    def clear_selection(self) -> None:
        self.targeting.selection.clear()

    # -- transformations -----------------------------------------------------

    async def apply_transformation(self, rule: TransformationRule) -> RuleOutcome:
        self._check_open()
        outcome = await self.transformer.apply(rule)
        if outcome.applied:
            self._append(rule)
        return outcome

    async def apply_to_selection(self, rule_type, **parameters) -> BatchReport:
        """Apply one rule of rule_type to every selected node, in selection order."""
        self._check_open()
        rules = renumber(
            TransformationRule(rule_type, locator, parameters) for locator in self.get_selection()
        )
        report = await self.transformer.apply_all(rules)
        self._record(rules, report)
        return report

    async def apply_preset(self, name: str) -> BatchReport:
        self._check_open()
        snapshot = PageSnapshot.from_dict(await self.bridge.snapshot())
        rules = generate(name, snapshot, self.settings)
        logger.info(f"Preset '{name}' generated {len(rules)} rule(s) for {snapshot.url}")
        report = await self.transformer.apply_all(rules)
        self._record(rules, report)
        return report

    def get_transformations(self) -> List[TransformationRule]:
        """Rules applied to the current document so far, in application order."""
        return list(self._rules)

    async def reset_page(self) -> None:
        """Reload the document; the only way to undo applied rules."""
        self._check_open()
        try:
            await self.bridge.reload()
        finally:
            self._discard_transient()
        logger.info("Page reset")

    # -- analysis ------------------------------------------------------------

    async def analyze(self) -> AnalysisResult:
        self._check_open()
        return await self.analyzer.analyze_page(self.bridge)

    async def request_advice(self) -> List[str]:
        if self._advisor is None:
            self._advisor = RestructuringAdvisor(settings=self.settings)
        return await self._advisor.suggest(await self.analyze())

    # -- templates -----------------------------------------------------------

    async def save_template(self, name: str, url_pattern: Optional[str] = None,
                            template_id: Optional[str] = None) -> Template:
        self._check_open()
        store = self._require_store()
        info = await self.bridge.document_info()
        return store.save(
            name,
            self._rules,
            url_pattern=url_pattern,
            current_url=info.get("url", ""),
            title=info.get("title", ""),
            template_id=template_id,
        )

    async def apply_template(self, template_id: str) -> BatchReport:
        self._check_open()
        store = self._require_store()
        template = store.get(template_id)
        report = await store.apply_template(template, self.transformer)
        self._record(template.transformations, report)
        return report

    def delete_template(self, template_id: str) -> bool:
        return self._require_store().delete(template_id)

    def list_templates(self) -> List[Template]:
        return self._require_store().list()

    async def matching_templates(self) -> List[Template]:
        store = self._require_store()
        info = await self.bridge.document_info()
        return store.match(info.get("url", ""))

    async def on_navigation(self, url: Optional[str] = None) -> Optional[BatchReport]:
        """
        Drop per-document state. With auto-apply enabled, replay the default
        template for the new address and return its report.
        """
        self._check_open()
        self._discard_transient()
        if not self.settings.auto_apply_default_template or self.store is None:
            return None
        if url is None:
            url = (await self.bridge.document_info()).get("url", "")
        template = self.store.default_for(url)
        if template is None:
            return None
        logger.info(f"Auto-applying default template '{template.name}' on {url}")
        report = await self.store.apply_template(template, self.transformer)
        self._record(template.transformations, report)
        return report

    def close(self) -> None:
        self._discard_transient()
        self.targeting.set_mode(CustomizationMode.OFF)
        self.closed = True

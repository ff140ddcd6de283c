"""
Transformation Engine - applies rules to the live document.

Failure model:
- locator no longer resolves  -> rule skipped (not_found), batch continues
- move target does not resolve -> rule failed (target_not_found), batch continues
- document replaced mid-batch  -> remaining rules skipped (document_gone), batch abandoned
There is no rollback and no retry; a reload is the only way back.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..bridge.base import PageBridge
from ..diagnostics import get_logger
from ..exceptions import BridgeError, DocumentGone, PagecraftError, TargetNotFound
from .rules import TransformationRule

logger = get_logger(__name__)


class RuleStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


# bridge status -> (outcome status, reason)
_STATUS_MAP = {
    "applied": (RuleStatus.APPLIED, None),
    "not_found": (RuleStatus.SKIPPED, "not_found"),
    "target_not_found": (RuleStatus.FAILED, "target_not_found"),
    "invalid_move": (RuleStatus.FAILED, "invalid_move"),
}


@dataclass
class RuleOutcome:
    rule_id: str
    rule_type: str
    locator: str
    status: RuleStatus
    reason: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.status == RuleStatus.APPLIED

    def raise_for_status(self) -> None:
        """Raise for outcomes that are errors rather than skips."""
        if self.reason == "target_not_found":
            raise TargetNotFound(f"Move target of rule {self.rule_id} does not resolve")
        if self.status == RuleStatus.FAILED:
            raise PagecraftError(f"Rule {self.rule_id} ({self.rule_type} {self.locator}) failed: {self.reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "type": self.rule_type,
            "locator": self.locator,
            "status": self.status.value,
            "reason": self.reason,
        }


@dataclass
class BatchReport:
    outcomes: List[RuleOutcome] = field(default_factory=list)
    abandoned: bool = False

    def _count(self, status: RuleStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def applied(self) -> int:
        return self._count(RuleStatus.APPLIED)

    @property
    def skipped(self) -> int:
        return self._count(RuleStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(RuleStatus.FAILED)

    @property
    def applied_ids(self) -> List[str]:
        return [o.rule_id for o in self.outcomes if o.applied]

    def outcome_for(self, rule_id: str) -> Optional[RuleOutcome]:
        for outcome in self.outcomes:
            if outcome.rule_id == rule_id:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied": self.applied,
            "skipped": self.skipped,
            "failed": self.failed,
            "abandoned": self.abandoned,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def _outcome(rule: TransformationRule, status: RuleStatus, reason: Optional[str] = None) -> RuleOutcome:
    return RuleOutcome(rule.id, rule.type.value, rule.locator, status, reason)


class TransformationEngine:
    """Applies TransformationRules through a PageBridge."""

    def __init__(self, bridge: PageBridge):
        self.bridge = bridge

    async def apply(self, rule: TransformationRule) -> RuleOutcome:
        """
        Apply one rule. Returns its outcome; DocumentGone propagates.
        """
        result = await self.bridge.mutate(rule.to_dict())
        bridge_status = result.get("status")
        status, reason = _STATUS_MAP.get(bridge_status, (RuleStatus.FAILED, str(bridge_status)))
        outcome = _outcome(rule, status, reason)
        if status == RuleStatus.APPLIED:
            logger.debug(f"Applied {rule.describe()}")
        elif status == RuleStatus.SKIPPED:
            logger.info(f"Skipped {rule.describe()}: {reason}")
        else:
            logger.warning(f"Failed {rule.describe()}: {reason}")
        return outcome

    async def apply_all(self, rules: Iterable[TransformationRule]) -> BatchReport:
        """
        Apply rules in ascending order_index (stable for equal indices).

        Each rule succeeds or fails on its own; earlier rules are never rolled
        back. If the document goes away, the rest of the batch is abandoned.
        """
        ordered = sorted(rules, key=lambda r: r.order_index)
        report = BatchReport()
        for position, rule in enumerate(ordered):
            try:
                outcome = await self.apply(rule)
            except DocumentGone as e:
                logger.warning(
                    f"Document gone after {position}/{len(ordered)} rules, abandoning batch: {e}"
                )
                report.abandoned = True
                report.outcomes.extend(
                    _outcome(r, RuleStatus.SKIPPED, "document_gone") for r in ordered[position:]
                )
                break
            except BridgeError as e:
                logger.error(f"Bridge error on {rule.describe()}: {e}")
                outcome = _outcome(rule, RuleStatus.FAILED, "bridge_error")
            report.outcomes.append(outcome)

        logger.info(
            f"Batch done: {report.applied} applied, {report.skipped} skipped, "
            f"{report.failed} failed{' (abandoned)' if report.abandoned else ''}"
        )
        return report

"""
Template Store - named, URL-matched rule sets that outlive the session.

The whole collection lives under one storage key and is rewritten on every
change (last writer wins). Timestamps are epoch milliseconds.
"""

import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..diagnostics import get_logger
from ..exceptions import RuleValidationError, StorageUnavailable, TemplateNotFound
from ..transform.engine import BatchReport, TransformationEngine
from ..transform.rules import TransformationRule, renumber
from .matchers import ExactUrlMatcher, UrlMatcher
from .storage import KeyValueStorage

logger = get_logger(__name__)

NAMESPACE_KEY = "pageTemplates"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    url_pattern: str
    original_url: str
    title: str
    transformations: List[TransformationRule] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0
    is_default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "urlPattern": self.url_pattern,
            "originalUrl": self.original_url,
            "title": self.title,
            "transformations": [r.to_dict() for r in self.transformations],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Template":
        """Build a Template from its stored record; rules are re-validated."""
        if not isinstance(data, Mapping):
            raise RuleValidationError(f"Template record must be an object, got {type(data).__name__}")
        for key in ("id", "name", "urlPattern"):
            if not isinstance(data.get(key), str) or not data[key].strip():
                raise RuleValidationError(f"Template record needs a non-empty {key!r}")
        rules = data.get("transformations") or []
        if not isinstance(rules, list):
            raise RuleValidationError("Template transformations must be a list")
        is_default = data.get("isDefault", False)
        if not isinstance(is_default, bool):
            raise RuleValidationError(f"Template isDefault must be true or false, got {is_default!r}")
        try:
            created = int(data.get("createdAt") or 0)
            updated = int(data.get("updatedAt") or created)
        except (TypeError, ValueError):
            raise RuleValidationError("Template timestamps must be integers")
        return cls(
            id=data["id"],
            name=data["name"],
            url_pattern=data["urlPattern"],
            original_url=str(data.get("originalUrl") or data["urlPattern"]),
            title=str(data.get("title") or ""),
            transformations=[TransformationRule.from_dict(r) for r in rules],
            created_at=created,
            updated_at=updated,
            is_default=is_default,
        )


class TemplateStore:
    """CRUD and URL matching over the persisted template collection."""

    def __init__(self, storage: KeyValueStorage, matcher: Optional[UrlMatcher] = None,
                 clock: Callable[[], int] = now_ms):
        self.storage = storage
        self.matcher = matcher or ExactUrlMatcher()
        self.clock = clock

    # -- persistence -------------------------------------------------------

    def _load(self) -> List[Template]:
        raw = self.storage.get(NAMESPACE_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise StorageUnavailable(f"Stored {NAMESPACE_KEY!r} is not a list")
        try:
            return [Template.from_dict(record) for record in raw]
        except RuleValidationError as e:
            raise StorageUnavailable(f"Stored template collection is corrupt: {e}") from e

    def _store(self, templates: Iterable[Template]) -> None:
        self.storage.set(NAMESPACE_KEY, [t.to_dict() for t in templates])

    # -- CRUD --------------------------------------------------------------

    def save(self, name: str, rules: Iterable[TransformationRule], url_pattern: Optional[str] = None,
             current_url: str = "", title: str = "", template_id: Optional[str] = None) -> Template:
        """
        Create a template, or re-save an existing one when template_id is given.

        url_pattern defaults to the exact current address. Re-saving keeps
        createdAt and the default flag and bumps updatedAt.
        """
        name = (name or "").strip()
        if not name:
            raise RuleValidationError("Template name must not be empty")
        pattern = url_pattern or current_url
        if not pattern:
            raise RuleValidationError("Template needs a URL pattern or the current URL")
        rules = renumber(sorted(rules, key=lambda r: r.order_index))

        templates = self._load()
        now = self.clock()
        existing = next((t for t in templates if t.id == template_id), None) if template_id else None
        if template_id and existing is None:
            raise TemplateNotFound(f"Template {template_id} not found")

        if existing is not None:
            saved = replace(
                existing,
                name=name,
                url_pattern=pattern,
                original_url=current_url or existing.original_url,
                title=title or existing.title,
                transformations=rules,
                updated_at=max(now, existing.updated_at + 1),
            )
            templates = [saved if t.id == saved.id else t for t in templates]
        else:
            saved = Template(
                id=str(uuid.uuid4()),
                name=name,
                url_pattern=pattern,
                original_url=current_url or pattern,
                title=title,
                transformations=rules,
                created_at=now,
                updated_at=now,
            )
            templates.append(saved)

        self._store(templates)
        logger.info(f"Saved template '{saved.name}' ({saved.id}) with {len(rules)} rule(s) for {pattern}")
        return saved

    def list(self) -> List[Template]:
        return self._load()

    def get(self, template_id: str) -> Template:
        for t in self._load():
            if t.id == template_id:
                return t
        raise TemplateNotFound(f"Template {template_id} not found")

    def delete(self, template_id: str) -> bool:
        templates = self._load()
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) == len(templates):
            return False
        self._store(remaining)
        logger.info(f"Deleted template {template_id}")
        return True

    def set_default(self, template_id: str) -> Template:
        """Mark one template as the default for its URL pattern."""
        templates = self._load()
        target = next((t for t in templates if t.id == template_id), None)
        if target is None:
            raise TemplateNotFound(f"Template {template_id} not found")
        updated = []
        for t in templates:
            if t.id == template_id:
                t = replace(t, is_default=True)
                target = t
            elif t.url_pattern == target.url_pattern and t.is_default:
                t = replace(t, is_default=False)
            updated.append(t)
        self._store(updated)
        return target

    # -- matching ----------------------------------------------------------

    def match(self, current_url: str) -> List[Template]:
        """Templates for current_url; defaults first, then most recently updated."""
        found = [t for t in self._load() if self.matcher.matches(t.url_pattern, current_url)]
        return sorted(found, key=lambda t: (not t.is_default, -t.updated_at))

    def default_for(self, current_url: str) -> Optional[Template]:
        for t in self.match(current_url):
            if t.is_default:
                return t
        return None

    # -- import / export ---------------------------------------------------

    def export_templates(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self._load()]

    def import_templates(self, records: Iterable[Mapping[str, Any]]) -> List[Template]:
        """
        Validate and store records. Either every record is valid and stored,
        or RuleValidationError is raised and nothing changes. Records whose id
        already exists replace the stored template.
        """
        if isinstance(records, Mapping):
            records = [records]
        imported = []
        for i, record in enumerate(records):
            try:
                imported.append(Template.from_dict(record))
            except RuleValidationError as e:
                raise RuleValidationError(f"Template record {i} is invalid: {e}") from e

        by_id = {t.id: t for t in self._load()}
        for t in imported:
            by_id[t.id] = t
        self._store(by_id.values())
        logger.info(f"Imported {len(imported)} template(s)")
        return imported

    # -- replay ------------------------------------------------------------

    async def apply_template(self, template: Template, transformer: TransformationEngine) -> BatchReport:
        logger.info(f"Applying template '{template.name}' ({len(template.transformations)} rule(s))")
        return await transformer.apply_all(template.transformations)

"""Shot template catalog with validation and the fixed Core Set."""

import logging
from typing import Any, Iterable, Iterator, Optional, Union

from .errors import InvalidShot, NotFound
from .shot_library import SHOT_DEFINITIONS
from .types import ShotFilter, ShotTemplate

logger = logging.getLogger(__name__)

ShotDefinition = Union[ShotTemplate, dict[str, Any]]


class ShotTemplateCatalog:
    """
    Collection of validated shot templates, keyed by id.

    Instances are passed to the pipeline explicitly; the pipeline only reads
    from them, so one catalog can be shared by concurrently running jobs.
    """

    def __init__(self, definitions: Optional[Iterable[ShotDefinition]] = None):
        self._templates: dict[str, ShotTemplate] = {}
        if definitions is not None:
            self.load(definitions)

    def add(self, definition: ShotDefinition) -> ShotTemplate:
        """
        Validate and insert one shot.

        Re-adding an identical definition is a no-op. A different definition
        under an existing id is rejected.

        Raises:
            InvalidShot: If the definition fails range validation or conflicts
        """
        template = definition if isinstance(definition, ShotTemplate) else ShotTemplate.from_dict(definition)

        existing = self._templates.get(template.id)
        if existing is not None:
            if existing == template:
                return existing
            raise InvalidShot(template.id, ["a different shot with this id is already loaded"])

        self._templates[template.id] = template
        return template

    def load(self, definitions: Iterable[ShotDefinition]) -> list[ShotTemplate]:
        """
        Validate and insert many shots. Idempotent for identical definitions.

        All definitions are validated before any is inserted, so a bad entry
        leaves the catalog unchanged.
        """
        templates = [
            d if isinstance(d, ShotTemplate) else ShotTemplate.from_dict(d)
            for d in definitions
        ]

        seen: dict[str, ShotTemplate] = {}
        for template in templates:
            previous = seen.get(template.id) or self._templates.get(template.id)
            if previous is not None and previous != template:
                raise InvalidShot(template.id, ["a different shot with this id is already loaded"])
            seen[template.id] = template

        for template in templates:
            self._templates[template.id] = template

        logger.debug(f"Catalog holds {len(self._templates)} shot template(s)")
        return templates

    def get_template(self, shot_id: str) -> ShotTemplate:
        """Look up a shot by id, raising NotFound for unknown ids."""
        try:
            return self._templates[shot_id]
        except KeyError:
            raise NotFound("ShotTemplate", shot_id) from None

    def list_templates(self, shot_filter: Optional[ShotFilter] = None) -> list[ShotTemplate]:
        """All shots matching the filter, ordered by priority then id."""
        shots = self._templates.values()
        if shot_filter is not None:
            shots = [s for s in shots if shot_filter.matches(s)]
        return sorted(shots, key=lambda s: (s.priority, s.id))

    def core_set(self) -> list[ShotTemplate]:
        """The fixed Core Set. Core-set jobs always use all of it."""
        return [s for s in self.list_templates() if s.is_core]

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[ShotTemplate]:
        return iter(self.list_templates())

    def __contains__(self, shot_id: object) -> bool:
        return shot_id in self._templates


def default_catalog() -> ShotTemplateCatalog:
    """Build a catalog from the shipped shot library."""
    return ShotTemplateCatalog(SHOT_DEFINITIONS)

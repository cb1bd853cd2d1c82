"""Per-option rule overrides persisted as JSON."""

import logging
from pathlib import Path
from typing import Dict, Optional

from .models import RuleOverride, RuleSettings
from .state_file import FileLock, load_json, write_json_atomic

logger = logging.getLogger(__name__)


class RuleOverrideStore:
    """Maps option id -> RuleOverride; the override wins per field."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_all(self) -> Dict[str, RuleOverride]:
        data = load_json(self.path, {})
        return {option_id: RuleOverride.from_dict(raw) for option_id, raw in data.items()}

    def get_for_option(self, option_id: str) -> Optional[RuleOverride]:
        return self.get_all().get(option_id)

    def set_for_option(self, option_id: str, override: Optional[RuleOverride]) -> None:
        """Store an override; None or an empty override removes the entry."""
        with FileLock(self.path):
            data = load_json(self.path, {})
            if override is None or override.is_empty():
                data.pop(option_id, None)
                logger.info(f"Cleared rule override for {option_id}")
            else:
                data[option_id] = override.to_dict()
                logger.info(f"Saved rule override for {option_id}: {data[option_id]}")
            write_json_atomic(self.path, data)

    def effective_rules(self, option_id: str, global_rules: RuleSettings) -> RuleSettings:
        return global_rules.merged(self.get_for_option(option_id))

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from ..models import Setting

logger = logging.getLogger(__name__)

# Keys the UI edits; unknown keys are stored as well
KNOWN_SETTING_KEYS = [
    "whisper_base_path",
    "initial_prompt",
    "ai_provider",
    "ollama_path",
    "ollama_model",
    "lmstudio_path",
    "lmstudio_api_key",
    "lmstudio_model",
    "openai_base_url",
    "openai_api_key",
    "openai_model",
    "review_prompt",
    "summary_prompt",
]


class SettingsService:
    """Key/value settings store backed by the `settings` table."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> Dict[str, Optional[str]]:
        return {s.key: s.value for s in self.db.query(Setting).all()}

    def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        keys = list(keys)
        if not keys:
            return {}
        rows = self.db.query(Setting).filter(Setting.key.in_(keys)).all()
        return {s.key: s.value for s in rows}

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        row = self.db.query(Setting).filter(Setting.key == key).first()
        if row is None or row.value is None:
            return default
        return row.value

    def save(self, values: Dict[str, Optional[str]]) -> None:
        """Insert-or-replace every key in one transaction."""
        try:
            for key, value in values.items():
                if value is not None and not isinstance(value, str):
                    value = str(value)
                self.db.merge(Setting(key=key, value=value))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Saved {len(values)} settings")

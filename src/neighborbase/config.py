"""
Configuration for external neighborhood loading.

Provides:
- Loader settings (file, encoding, subject handling, diagnostics)
- JSON persistence
- Configuration validation
"""
from __future__ import annotations

import codecs
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

# Option key for the neighbor file
NEIGHBORHOOD_FILE_KEY = "externalneighbors.file"


class ConfigValidationError(Exception):
    """Configuration validation error."""
    pass


@dataclass
class NeighborhoodConfig:
    """Settings for loading an external neighborhood."""
    file: Optional[Path] = None
    encoding: str = "utf-8"
    include_subject: bool = False
    warn_on_collision: bool = True
    log_unresolved: bool = True

    def __post_init__(self):
        if self.file is not None and not isinstance(self.file, Path):
            self.file = Path(self.file)

    def validate(self) -> None:
        """
        Check the configuration.

        Raises:
            ConfigValidationError: If the file is unset or the encoding unknown
        """
        if self.file is None:
            raise ConfigValidationError(f"Missing required setting '{NEIGHBORHOOD_FILE_KEY}'")
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ConfigValidationError(f"Unknown encoding: {self.encoding}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            NEIGHBORHOOD_FILE_KEY: str(self.file) if self.file is not None else None,
            "encoding": self.encoding,
            "include_subject": self.include_subject,
            "warn_on_collision": self.warn_on_collision,
            "log_unresolved": self.log_unresolved,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NeighborhoodConfig":
        file = data.get(NEIGHBORHOOD_FILE_KEY, data.get("file"))
        return cls(
            file=Path(file) if file else None,
            encoding=data.get("encoding", "utf-8"),
            include_subject=data.get("include_subject", False),
            warn_on_collision=data.get("warn_on_collision", True),
            log_unresolved=data.get("log_unresolved", True),
        )

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration as JSON."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "NeighborhoodConfig":
        """Load configuration from JSON, or defaults if the file is missing."""
        config_file = Path(path)
        if config_file.exists():
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls.from_dict(data)
        logger.info(f"No configuration at {config_file}, using defaults")
        return cls()

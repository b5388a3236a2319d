from __future__ import annotations

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import logging

from invoicegen.core.paths import settings_path

logger = logging.getLogger(__name__)

# Path to the settings.json (runtime-aware)
SETTINGS_PATH = settings_path()


@dataclass
class Settings:
	# Prefix used by the currency formatter and the items table headers
	currency: str = "RM"
	# Slack (px) absorbed before a box counts as overflowing; covers sub-pixel rounding
	measurement_tolerance: float = 1.5
	# Supersampling factor for exported page bitmaps (794x1123 base)
	raster_scale: int = 2
	# Applied to elements that carry no lineHeight of their own
	default_line_height: float = 1.4
	# Optional TTF files; Helvetica is used when missing
	font_path: Optional[str] = "assets/fonts/NotoSans-Regular.ttf"
	bold_font_path: Optional[str] = "assets/fonts/NotoSans-Bold.ttf"
	italic_font_path: Optional[str] = None
	bold_italic_font_path: Optional[str] = None
	# PDF metadata
	pdf_author: str = "Invoice Generator"
	# Optional explicit SQLite file for stored templates; None uses the user-writable dir
	db_path: Optional[str] = None
	# Remember last used folder for "Save PDF" dialog
	last_pdf_dir: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Settings":
		# Merge provided values over defaults, ignore unknown keys
		defaults = asdict(cls())
		merged: Dict[str, Any] = {**defaults, **{k: v for k, v in data.items() if k in defaults}}
		return cls(**merged)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


def _coerce_path(path: Optional[Union[str, Path]]) -> Path:
	return Path(path) if path is not None else SETTINGS_PATH


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
	"""
	Load settings from JSON (UTF-8). If the file is missing, write defaults and return them.
	"""
	p = _coerce_path(path)
	if not p.exists():
		settings = Settings()
		save_settings(settings, p)
		return settings

	try:
		with p.open("r", encoding="utf-8") as f:
			raw: Dict[str, Any] = json.load(f)
	except (json.JSONDecodeError, OSError):
		# If unreadable/corrupt, fall back to defaults (do not overwrite automatically)
		logger.warning("Settings file %s is unreadable; using defaults", p)
		return Settings()

	return Settings.from_dict(raw if isinstance(raw, dict) else {})


def save_settings(settings: Settings, path: Optional[Union[str, Path]] = None) -> None:
	"""Save settings to JSON (UTF-8), creating parent dirs if needed."""
	p = _coerce_path(path)
	p.parent.mkdir(parents=True, exist_ok=True)
	tmp = p.with_suffix(p.suffix + ".tmp")
	with tmp.open("w", encoding="utf-8", newline="\n") as f:
		json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
		f.write("\n")
	tmp.replace(p)

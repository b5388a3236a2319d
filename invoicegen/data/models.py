from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def _now() -> datetime:
	return datetime.now(timezone.utc)


class DocumentTemplate(SQLModel, table=True):
	__tablename__ = "templates"  # type: ignore[assignment]

	id: Optional[int] = Field(default=None, primary_key=True)
	name: str
	# Template JSON ({"elements": [...]}) as stored by the builder
	template_data: str
	user_id: Optional[int] = Field(default=None, index=True)
	created_at: datetime = Field(default_factory=_now, index=True)

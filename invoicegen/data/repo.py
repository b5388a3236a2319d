from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Union

from sqlmodel import select

from invoicegen.data.db import session_scope
from invoicegen.data.models import DocumentTemplate
from invoicegen.model.template import Template

logger = logging.getLogger(__name__)

TemplateData = Union[Template, Dict[str, Any], str]


def _dump(template: TemplateData) -> str:
	"""Validate template data and return the JSON text stored in template_data."""
	if isinstance(template, Template):
		data = template.to_dict()
	elif isinstance(template, str):
		data = json.loads(template)
	else:
		data = dict(template)
	# raises ValueError on a malformed template
	Template.from_dict(data)
	return json.dumps(data, ensure_ascii=False)


def _owned(row: Optional[DocumentTemplate], user_id: Optional[int]) -> Optional[DocumentTemplate]:
	if row is None:
		return None
	if user_id is not None and row.user_id != user_id:
		return None
	return row


def create_template(name: str, template: TemplateData, user_id: Optional[int] = None) -> DocumentTemplate:
	"""Store a template; name and data are required."""
	normalized = (name or "").strip()
	if not normalized:
		raise ValueError("Template name is required")
	if template is None:
		raise ValueError("Template data is required")
	payload = _dump(template)

	with session_scope() as s:
		row = DocumentTemplate(name=normalized, template_data=payload, user_id=user_id)
		s.add(row)
		# Ensure PK is populated before leaving the session
		s.flush()
		s.refresh(row)
		logger.info("Created template %s (%r)", row.id, row.name)
		return row


def get_template(template_id: int, user_id: Optional[int] = None) -> Optional[DocumentTemplate]:
	"""Fetch a template by id; with user_id, only when that user owns it."""
	with session_scope() as s:
		return _owned(s.get(DocumentTemplate, template_id), user_id)


def list_templates(user_id: Optional[int] = None) -> List[DocumentTemplate]:
	"""Newest first; restricted to one user's templates when user_id is given."""
	with session_scope() as s:
		stmt = select(DocumentTemplate)
		if user_id is not None:
			stmt = stmt.where(DocumentTemplate.user_id == user_id)
		stmt = stmt.order_by(DocumentTemplate.created_at.desc(), DocumentTemplate.id.desc())
		return list(s.exec(stmt).all())


def update_template(
	template_id: int,
	name: Optional[str] = None,
	template: Optional[TemplateData] = None,
	user_id: Optional[int] = None,
) -> Optional[DocumentTemplate]:
	"""Change name and/or data. Returns None when the template is missing or not owned."""
	payload = _dump(template) if template is not None else None
	with session_scope() as s:
		row = _owned(s.get(DocumentTemplate, template_id), user_id)
		if row is None:
			return None
		if name is not None:
			if not name.strip():
				raise ValueError("Template name is required")
			row.name = name.strip()
		if payload is not None:
			row.template_data = payload
		s.add(row)
		s.flush()
		s.refresh(row)
		return row


def delete_template(template_id: int, user_id: Optional[int] = None) -> bool:
	"""Delete a template; False when it is missing or not owned."""
	with session_scope() as s:
		row = _owned(s.get(DocumentTemplate, template_id), user_id)
		if row is None:
			return False
		s.delete(row)
		logger.info("Deleted template %s", template_id)
		return True


def load_template(template_id: int, user_id: Optional[int] = None) -> Template:
	"""The stored template as a model object; LookupError when not found."""
	row = get_template(template_id, user_id=user_id)
	if row is None:
		raise LookupError(f"Template not found: {template_id}")
	return Template.from_dict(json.loads(row.template_data))

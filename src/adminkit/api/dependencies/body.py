# adminkit/api/dependencies/body.py

from typing import Any, Dict
from fastapi import Depends, Request
from adminkit.utils.form_data import parse_form_body

async def get_form_body(request: Request) -> Dict[str, Any]:
    """Submitted form fields as a nested payload: Post[title] => {"Post": {"title": ...}}"""
    form = await request.form()
    return parse_form_body(form.multi_items())

FormBodyDep = Depends(get_form_body)

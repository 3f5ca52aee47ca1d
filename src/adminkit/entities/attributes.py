# adminkit/entities/attributes.py

import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator

# "name", "name:format", "name:format:Label"
_SHORTHAND = re.compile(r"^([^:]+)(?::(\w*))?(?::(.*))?$")


class EntityAttribute(BaseModel):
    """
    One displayable attribute of an entity.

    Accepted declarations:

    .. code-block:: python

        "id"
        "bio:html"
        "dob:date:Date of birth"
        {
            "attribute": "posts",                                # relationship name
            "format": ("model", {"label_attribute": "title"}),   # format with options
            "visible": True,                                     # shown in list, view, create and update
            "editable": False,                                   # left out of create and update forms
        }
    """
    attribute: str = Field(..., min_length=1)
    format: str = "text"
    options: Dict[str, Any] = Field(default_factory=dict)
    label: Optional[str] = None
    visible: bool = True
    editable: bool = True

    @model_validator(mode="before")
    @classmethod
    def _expand(cls, data: Any) -> Any:
        if isinstance(data, str):
            match = _SHORTHAND.match(data)
            if not match:
                raise ValueError(
                    'Attribute must be specified in the format of "attribute", "attribute:format" '
                    'or "attribute:format:label"'
                )
            data = {"attribute": match.group(1), "format": match.group(2) or "text", "label": match.group(3)}
        elif isinstance(data, dict) and isinstance(data.get("format"), (list, tuple)):
            data = dict(data)
            fmt, options = data["format"]
            data["format"] = fmt
            data["options"] = {**(options or {}), **data.get("options", {})}
        return data

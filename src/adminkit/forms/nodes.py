# adminkit/forms/nodes.py
"""
Field tree of an admin form.

A tree is a node or a list of nodes. There are three node kinds, told apart
by their `kind` tag:

    GroupNode   -- wraps its rendered children with `wrapper` ("{items}" placeholder)
    FieldNode   -- a model-bound input widget
    ButtonNode  -- a submit button, optionally bound to an action

.. code-block:: python

    [
        GroupNode(wrapper='<div class="col-md-8">{items}</div>', items=[
            FieldNode(attribute="title"),
            FieldNode(attribute="body", widget="textarea", format="html"),
        ]),
        GroupNode(wrapper='<div class="col-md-4">{items}</div>', items=[
            ButtonNode(id="publish", label="Publish", action="publish"),
        ]),
    ]
"""

from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from adminkit.forms.actions import Action, to_action
from adminkit.services.exceptions import FormConfigurationError

ITEMS_PLACEHOLDER = "{items}"

# format token of relation fields
LINKED_FORMAT = "model"


class BaseNode(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    visible: bool = True


class RelationSpec(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    target: Any = Field(..., description="Mapped class of the related records")
    label_attribute: str = Field("id", description="Attribute of the related record shown in the picker")
    multiple: Optional[bool] = Field(None, description="None: taken from the relationship's uselist")
    query: Optional[Any] = Field(None, description="Select statement for candidate records, indexed by primary key")


class FieldNode(BaseNode):
    kind: Literal["field"] = "field"
    attribute: str = Field(..., min_length=1)
    widget: str = "input"
    format: str = "text"
    label: Optional[str] = None
    hint: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict, description="Extra html attributes of the input")
    items: Optional[Dict[str, str]] = Field(None, description="Static choices, value => label")
    relation: Optional[RelationSpec] = None

    @field_validator("items", mode="before")
    @classmethod
    def _stringify_items(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items()}
        return value

    @property
    def is_linked(self) -> bool:
        return self.format == LINKED_FORMAT


class ButtonNode(BaseNode):
    kind: Literal["button"] = "button"
    id: Optional[str] = None
    label: str = ""
    options: Dict[str, Any] = Field(default_factory=dict)
    action: Optional[Action] = None

    @field_validator("action", mode="before")
    @classmethod
    def _wrap_action(cls, value: Any) -> Any:
        return to_action(value)


class GroupNode(BaseNode):
    kind: Literal["group"] = "group"
    wrapper: Optional[str] = None
    items: List["FormNode"] = Field(default_factory=list)

    @field_validator("wrapper")
    @classmethod
    def _wrapper_has_placeholder(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value.count(ITEMS_PLACEHOLDER) != 1:
            raise ValueError(f"wrapper must contain exactly one '{ITEMS_PLACEHOLDER}' placeholder")
        return value

    @field_validator("items", mode="before")
    @classmethod
    def _skip_non_nodes(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [item for item in value if isinstance(item, (BaseNode, dict))]
        return value


FormNode = Annotated[Union[GroupNode, FieldNode, ButtonNode], Field(discriminator="kind")]
FieldTree = Union[GroupNode, FieldNode, ButtonNode, List[Union[GroupNode, FieldNode, ButtonNode]]]

GroupNode.model_rebuild()

_node_adapter = TypeAdapter(FormNode)


def parse_node(raw: Any) -> BaseNode:
    if isinstance(raw, BaseNode):
        return raw
    if not isinstance(raw, dict):
        raise FormConfigurationError('Parameter "fields" must be a node or a list of nodes')
    try:
        return _node_adapter.validate_python(raw)
    except ValidationError as e:
        raise FormConfigurationError(f"Invalid field tree node: {e}") from e


def parse_field_tree(raw: Any) -> FieldTree:
    """Validates a layout given as nodes and/or plain dicts. Non-node list entries are skipped."""
    if isinstance(raw, (list, tuple)):
        return [parse_node(item) for item in raw if isinstance(item, (BaseNode, dict))]
    return parse_node(raw)


def iter_nodes(tree: Any) -> Iterator[BaseNode]:
    """Depth-first walk in document order, hidden nodes included."""
    if isinstance(tree, (list, tuple)):
        for item in tree:
            yield from iter_nodes(item)
    elif isinstance(tree, GroupNode):
        yield tree
        yield from iter_nodes(tree.items)
    elif isinstance(tree, BaseNode):
        yield tree

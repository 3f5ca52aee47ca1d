# adminkit/forms/__init__.py

from .actions import CallbackAction, MethodAction
from .nodes import GroupNode, FieldNode, ButtonNode, RelationSpec, parse_field_tree
from .widgets import Widget, Input, Textarea, Select, register_widget, get_widget
from .form import Form

__all__ = [
    "CallbackAction",
    "MethodAction",
    "GroupNode",
    "FieldNode",
    "ButtonNode",
    "RelationSpec",
    "parse_field_tree",
    "Widget",
    "Input",
    "Textarea",
    "Select",
    "register_widget",
    "get_widget",
    "Form",
]

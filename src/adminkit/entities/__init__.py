# adminkit/entities/__init__.py
from .attributes import EntityAttribute
from .entity import Entity, FormConfig
from .registry import AdminRegistry, registry

# adminkit/entities/registry.py

from typing import Dict, List, Type

from adminkit.entities.entity import Entity
from adminkit.services.exceptions import FormConfigurationError, NotFoundError


class AdminRegistry:
    """Entities managed by the admin panel, indexed by slug."""

    def __init__(self):
        self._entities: Dict[str, Entity] = {}

    def register(self, entity_class: Type[Entity]) -> Type[Entity]:
        """Registers an entity class. Usable as a class decorator."""
        slug = entity_class.slug()
        if slug in self._entities:
            raise FormConfigurationError(f"An entity with slug '{slug}' is already registered.")
        self._entities[slug] = entity_class()
        return entity_class

    def get(self, slug: str) -> Entity:
        entity = self._entities.get(slug)
        if entity is None:
            raise NotFoundError(f"Entity '{slug}' not found.")
        return entity

    def all(self) -> List[Entity]:
        return list(self._entities.values())

    def __contains__(self, slug: str) -> bool:
        return slug in self._entities

# 默认注册表
registry = AdminRegistry()

# adminkit/api/dependencies/context.py

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from adminkit.core.context import AppContext
from adminkit.db.session import get_db
from adminkit.entities.registry import AdminRegistry, registry as default_registry

def get_registry(request: Request) -> AdminRegistry:
    """宿主应用可以通过 app.state.admin_registry 提供自己的注册表"""
    return getattr(request.app.state, "admin_registry", None) or default_registry

async def get_base_context(
    db: AsyncSession = Depends(get_db),
    registry: AdminRegistry = Depends(get_registry),
) -> AppContext:
    return AppContext(db=db, registry=registry)

ContextDep = Depends(get_base_context)

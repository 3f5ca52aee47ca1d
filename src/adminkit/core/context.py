# adminkit/core/context.py

from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from adminkit.entities.registry import AdminRegistry

class AppContext(BaseModel):
    """
    Defines the typed context for service layer operations.
    Services receive their dependencies through it instead of resolving globals.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # 核心数据库会话
    db: AsyncSession

    # 当前请求可管理的实体
    registry: AdminRegistry

# adminkit/schemas/entity_schemas.py

from pydantic import BaseModel, Field
from typing import List

class EntityAttributeRead(BaseModel):
    attribute: str = Field(..., description="模型属性名")
    format: str = Field(..., description="显示格式")
    label: str = Field(..., description="显示名称")
    visible: bool
    editable: bool

class EntityRead(BaseModel):
    id: str = Field(..., description="实体标识")
    slug: str = Field(..., description="URL 中使用的实体名")
    label: str = Field(..., description="单数名称")
    plural_label: str = Field(..., description="复数名称")
    attributes: List[EntityAttributeRead] = Field(default_factory=list)

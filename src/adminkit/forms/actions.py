# adminkit/forms/actions.py

import functools
from typing import Annotated, Any, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from adminkit.services.exceptions import ActionNotFoundError


class CallbackAction(BaseModel):
    """Calls `fn(model)` when the button is pressed."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["callback"] = "callback"
    fn: Callable[..., Any]

    def resolve(self, model: Any) -> Callable[[], Any]:
        return functools.partial(self.fn, model)


class MethodAction(BaseModel):
    """Calls `model.<name>()` when the button is pressed."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["method"] = "method"
    name: str = Field(..., min_length=1)

    def resolve(self, model: Any) -> Callable[[], Any]:
        method = getattr(model, self.name, None)
        if not callable(method):
            raise ActionNotFoundError(f'Method "{self.name}" not found')
        return method


Action = Annotated[Union[CallbackAction, MethodAction], Field(discriminator="kind")]


def to_action(value: Any) -> Any:
    """Wraps a plain callable or method name from layout configuration into its action variant."""
    if isinstance(value, (CallbackAction, MethodAction)) or value is None:
        return value
    if isinstance(value, str):
        return MethodAction(name=value)
    if callable(value):
        return CallbackAction(fn=value)
    # dict 配置交给 pydantic 的 discriminator 校验
    return value

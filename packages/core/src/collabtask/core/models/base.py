"""领域模型基类

所有规范实体均为不可变快照：字段名使用 snake_case，
同时通过 camelCase 别名输出展示层使用的规范形态（model_dump(by_alias=True)）。
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DomainModel(BaseModel):
    """不可变领域模型基类，修改即替换（model_copy(update=...)）"""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

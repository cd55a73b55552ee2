import time

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    """Epoch milliseconds, the timestamp unit browsers expect."""
    return int(time.time() * 1000)


class CamelModel(BaseModel):
    """Wire models: snake_case in Python, camelCase on the socket."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)

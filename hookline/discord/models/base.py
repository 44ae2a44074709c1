from pydantic import BaseModel, PrivateAttr


class RawBaseModel(BaseModel):
    _raw_data: dict = PrivateAttr(default_factory=dict)

    def __init__(self, **data) -> None:  # noqa: ANN003
        super().__init__(**data)
        self._raw_data = data.copy()

    @property
    def _raw(self) -> dict:
        return self._raw_data

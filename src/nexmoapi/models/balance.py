from pydantic import BaseModel


class AccountBalance(BaseModel):
    value: float
    autoReload: bool | None = None

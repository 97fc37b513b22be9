from pydantic import BaseModel, Field

class PaginationInfo(BaseModel):
    total: int
    per_page: int
    current_page: int
    last_page: int
    from_: int = Field(serialization_alias="from")
    to: int

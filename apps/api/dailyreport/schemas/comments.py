from datetime import datetime

from pydantic import BaseModel, Field

class CommentCreate(BaseModel):
    comment_text: str = Field(min_length=1, max_length=500)

class CommentOut(BaseModel):
    comment_id: int
    report_id: int
    sales_person_id: int
    sales_person_name: str
    comment_text: str
    created_at: datetime
    updated_at: datetime

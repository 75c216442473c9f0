from pydantic import BaseModel


class StudentRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    roll_number: str | None = None
    photo: str | None = None

    class Config:
        from_attributes = True

from .base import BaseModel


class User(BaseModel):
    user_id: int
    username: str
    idnumber: str = ""


class Group(BaseModel):
    group_id: int
    course_id: int
    name: str
    idnumber: str = ""


class Quiz(BaseModel):
    quiz_id: int
    course_id: int
    name: str

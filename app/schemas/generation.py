from pydantic import BaseModel


class GenerateImageOut(BaseModel):
    url: str
    prompt: str
    description: str = ""


class ErrorOut(BaseModel):
    error: str
    details: str = ""

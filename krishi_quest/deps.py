# krishi_quest/deps.py
from fastapi import Request

from krishi_quest.repository import Repository


# FastAPI dependency
def get_repository(request: Request) -> Repository:
    return request.app.state.repository

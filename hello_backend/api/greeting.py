from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse


GREETING = "Hello from backend!"

router = APIRouter(tags=["greeting"])


@router.api_route("/", methods=["GET", "HEAD"], response_class=PlainTextResponse)
async def greeting() -> str:
    return GREETING

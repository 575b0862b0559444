from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends

from app.models.tool import Tool
from app.schemas.common import APIResponse
from app.services.tool import ToolService

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("/")
async def get_tools(service: Annotated[ToolService, Depends()]) -> APIResponse[Sequence[Tool]]:
    return APIResponse(data=await service.get_tools())

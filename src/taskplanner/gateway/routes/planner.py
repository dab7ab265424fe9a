"""规划器路由

GET    /api/planner                 状态快照，?sync=true 时先同步外部作业
POST   /api/planner/manual          创建手动条目
POST   /api/planner/{id}/archive    归档（completed / deleted）
POST   /api/planner/{id}/restore    从归档恢复
DELETE /api/planner/{id}            永久删除
GET    /api/planner/{id}            条目详情 + 审计事件

所有写操作成功后返回最新状态快照。
- 400: 输入非法
- 404: 条目不存在或状态不符
- 422: 路径中的条目 id 不是 1..2^63-1 的整数
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from pydantic import AliasChoices, BaseModel, Field
from starlette.responses import JSONResponse
from taskplanner.core.exceptions import NotFoundError, ValidationError
from taskplanner.core.models import PlannerState

from ..deps import get_planner_service
from ..services.planner_service import PlannerService, SyncReport

router = APIRouter()

# SQLite INTEGER 上限；越界 id 在进入 Store 前即被拒绝（422）
SQLITE_MAX_ID = 2**63 - 1

ItemId = Annotated[int, Path(ge=1, le=SQLITE_MAX_ID, description="条目 ID")]


class ManualItemRequest(BaseModel):
    """手动条目请求体（兼容旧字段名 text）"""

    title: str = Field(
        validation_alias=AliasChoices("title", "text"),
        description="任务标题",
    )
    due_at: datetime | None = Field(default=None, description="截止时间")
    scheduled_time: str | None = Field(default=None, description="计划时刻 HH:MM")
    notes: str | None = Field(default=None, description="备注")


class ArchiveRequest(BaseModel):
    """归档请求体"""

    reason: str = Field(description="归档原因：completed / deleted")


def _state_content(state: PlannerState, report: SyncReport | None = None) -> dict:
    content = state.model_dump(mode="json")
    if report is not None:
        content["sync"] = report.model_dump(mode="json")
    return content


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


@router.get("/api/planner")
async def get_planner_state(
    sync: bool = Query(default=False, description="是否先同步外部作业"),
    service: PlannerService = Depends(get_planner_service),
):
    """返回状态快照；同步失败时仍返回 200，并在 sync 字段中说明"""
    state, report = await service.refresh(sync=sync)
    return _state_content(state, report)


@router.post("/api/planner/manual")
async def create_manual_item(
    body: ManualItemRequest,
    service: PlannerService = Depends(get_planner_service),
):
    """创建手动条目"""
    try:
        state = await service.create_manual(
            body.title,
            due_at=body.due_at,
            scheduled_time=body.scheduled_time,
            notes=body.notes,
        )
    except ValidationError as e:
        return _error(400, "INVALID_MANUAL_ITEM", str(e))
    return _state_content(state)


@router.post("/api/planner/{item_id}/archive")
async def archive_item(
    item_id: ItemId,
    body: ArchiveRequest,
    service: PlannerService = Depends(get_planner_service),
):
    """归档活跃条目"""
    try:
        state = await service.archive(item_id, body.reason)
    except ValidationError as e:
        return _error(400, "INVALID_ARCHIVE_REASON", str(e))
    except NotFoundError as e:
        return _error(404, "ITEM_NOT_FOUND", str(e))
    return _state_content(state)


@router.post("/api/planner/{item_id}/restore")
async def restore_item(
    item_id: ItemId,
    service: PlannerService = Depends(get_planner_service),
):
    """恢复已归档条目"""
    try:
        state = await service.restore(item_id)
    except NotFoundError as e:
        return _error(404, "ITEM_NOT_FOUND", str(e))
    return _state_content(state)


@router.delete("/api/planner/{item_id}")
async def purge_item(
    item_id: ItemId,
    service: PlannerService = Depends(get_planner_service),
):
    """永久删除条目（任意状态）"""
    try:
        state = await service.purge(item_id)
    except NotFoundError as e:
        return _error(404, "ITEM_NOT_FOUND", str(e))
    return _state_content(state)


@router.get("/api/planner/{item_id}")
async def get_item_detail(
    item_id: ItemId,
    service: PlannerService = Depends(get_planner_service),
):
    """查询条目详情，包含其审计事件"""
    detail = await service.get_item_detail(item_id)
    if detail is None:
        return _error(404, "ITEM_NOT_FOUND", f"Planner item {item_id} not found")

    item, events = detail
    return {
        "item": item.model_dump(mode="json"),
        "events": [e.model_dump(mode="json") for e in events],
    }

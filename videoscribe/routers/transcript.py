"""
转写 API 路由

提供三种调用方式:
  1. POST /api/transcribe        — 异步模式：立即返回 task_id，后台处理
  2. POST /api/transcribe_sync   — 同步模式：等待处理完成后返回结果
  3. GET  /api/task/{task_id}    — 查询异步任务状态与结果
"""
import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from videoscribe.models.api import TaskStatusResponse, TranscribeRequest, TranscribeResponse
from videoscribe.services.transcription_service import TranscriptionService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["转写"])


def get_service(request: Request) -> TranscriptionService:
    """从 app.state 取得服务实例"""
    return request.app.state.service


def _to_response(task_id: str, data: dict) -> TranscribeResponse:
    return TranscribeResponse(
        task_id=task_id,
        text=data.get("text", ""),
        language=data.get("language"),
        segment_count=data.get("segment_count", 0),
        output_path=data.get("output_path", ""),
    )


# ==================== API Endpoints ====================


@router.post("/transcribe", summary="异步转写")
def transcribe_async(
    req: TranscribeRequest,
    background_tasks: BackgroundTasks,
    service: TranscriptionService = Depends(get_service),
):
    """
    提交转写任务（后台异步处理）

    返回 task_id，通过 GET /api/task/{task_id} 轮询结果
    """
    task_id = str(uuid.uuid4())
    service.mark_pending(task_id)
    background_tasks.add_task(_run_task, service=service, task_id=task_id, req=req)

    logger.info(f"[API] 异步任务已提交: task_id={task_id}")
    return {"task_id": task_id, "status": "pending", "message": "任务已提交"}


@router.post("/transcribe_sync", summary="同步转写", response_model=TranscribeResponse)
def transcribe_sync(
    req: TranscribeRequest,
    service: TranscriptionService = Depends(get_service),
):
    """
    同步转写（等待完成后返回）

    适合短音频或测试使用，长音频建议使用异步接口
    """
    task_id = str(uuid.uuid4())
    options = req.to_options(service.settings.default_language)

    try:
        service.run_task(task_id, req.source, options, fmt=req.output_format)
    except Exception as e:
        logger.error(f"[API] 同步转写失败: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return _to_response(task_id, service.get_result(task_id) or {})


@router.get("/task/{task_id}", summary="查询任务状态", response_model=TaskStatusResponse)
def get_task_status(
    task_id: str,
    service: TranscriptionService = Depends(get_service),
):
    """
    查询异步任务的处理状态

    状态流转: pending → downloading → transcribing → saving → success / failed
    """
    status_data = service.get_status(task_id)
    status = status_data.get("status", "not_found")
    if status == "not_found":
        raise HTTPException(status_code=404, detail=f"任务不存在: {task_id}")

    result = None
    if status == "success":
        result_data = service.get_result(task_id)
        if result_data:
            result = _to_response(task_id, result_data)

    return TaskStatusResponse(
        task_id=task_id,
        status=status,
        message=status_data.get("message", ""),
        result=result,
    )


# ==================== 后台任务执行 ====================


def _run_task(service: TranscriptionService, task_id: str, req: TranscribeRequest):
    """后台执行转写任务，失败信息已写入 status.json"""
    try:
        service.run_task(
            task_id,
            req.source,
            req.to_options(service.settings.default_language),
            fmt=req.output_format,
        )
    except Exception as e:
        logger.error(f"[后台任务] 失败: task_id={task_id}, error={e}", exc_info=True)

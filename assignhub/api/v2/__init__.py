"""API v2 路由包入口。"""

from fastapi import APIRouter

from assignhub.api.v2 import assignments, evaluations

router = APIRouter(prefix="/api/v2")

# 注册子路由
router.include_router(assignments.router, prefix="/assignments", tags=["作业"])
router.include_router(evaluations.router, prefix="/evaluations", tags=["评价"])

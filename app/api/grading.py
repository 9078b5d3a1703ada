from typing import List

from fastapi import APIRouter

from app.schemas.results import ClassifyRequest, ClassifyResponse, GradeBand, GradingScaleOut
from app.services.grading import SCALES, grade_remark
from app.api.dependencies import resolve_scale

router = APIRouter()


@router.get("/grading/scales", response_model=List[GradingScaleOut])
async def list_grading_scales():
    """
    List the available grading scales and their bands.
    """
    return [
        GradingScaleOut(name=scale.name, bands=[GradeBand(**band) for band in scale.describe()])
        for scale in SCALES.values()
    ]


@router.post("/grading/classify", response_model=ClassifyResponse)
async def classify_score(request: ClassifyRequest):
    """
    Grade a single overall score on a named scale.
    """
    scale = resolve_scale(request.scale)
    grade = scale.classify(request.score)
    return ClassifyResponse(
        score=request.score,
        scale=scale.name,
        grade=grade,
        remark=grade_remark(grade, scale),
    )

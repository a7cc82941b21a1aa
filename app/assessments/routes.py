"""Assessment API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.audit.services import AuditService
from app.businesses.access import (
    BusinessAccess,
    get_business_access,
    resolve_business_access,
    require_edit,
)
from app.models import Assessment, BusinessProfile, NotificationType, User
from app.notifications.service import get_notification_service
from app.assessments import schemas
from app.assessments.questions import ENGINES, QUESTIONS, TOTAL_MAX_SCORE
from app.assessments.scoring import AssessmentError, score_assessment

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Assessments"])


@router.get("/assessments/questions", response_model=schemas.QuestionBankResponse)
async def get_question_bank(current_user: User = Depends(get_current_user)):
    """The assessment questions grouped by engine."""
    engines = []
    for engine in ENGINES:
        questions = [
            schemas.QuestionResponse(
                id=q.id,
                engine=q.engine,
                text=q.text,
                options=[schemas.OptionResponse(value=o.value, label=o.label, points=o.points) for o in q.options],
            )
            for q in QUESTIONS
            if q.engine == engine.id
        ]
        engines.append(schemas.EngineResponse(
            id=engine.id,
            name=engine.name,
            subtitle=engine.subtitle,
            max_score=engine.max_score,
            questions=questions,
        ))
    return schemas.QuestionBankResponse(engines=engines, total_max=TOTAL_MAX_SCORE)


@router.post(
    "/businesses/{business_id}/assessments",
    response_model=schemas.AssessmentResponse,
    status_code=201,
)
async def submit_assessment(
    data: schemas.AssessmentSubmit,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Score and save a completed assessment.

    The revenue stage comes from the submitted annual revenue, or the
    business profile when none is given.
    """
    require_edit(access)

    annual_revenue = data.annual_revenue
    if annual_revenue is None:
        result = await db.execute(
            select(BusinessProfile.annual_revenue).where(BusinessProfile.business_id == access.business_id)
        )
        annual_revenue = result.scalar_one_or_none()

    try:
        scored = score_assessment(data.answers, annual_revenue)
    except AssessmentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    assessment = Assessment(
        business_id=access.business_id,
        user_id=current_user.id,
        answers=dict(data.answers),
        engine_scores={engine_id: s.as_dict() for engine_id, s in scored.engine_scores.items()},
        total_score=scored.total_score,
        total_max=scored.total_max,
        percentage=scored.percentage,
        health_status=scored.health_status,
        revenue_stage=scored.revenue_stage,
        strengths=scored.strengths,
        improvement_areas=scored.improvement_areas,
        recommendations=scored.recommendations,
    )
    db.add(assessment)
    await db.flush()

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_create("assessments", assessment.id, {
        "percentage": assessment.percentage,
        "health_status": assessment.health_status,
    })

    coach_id = access.business.assigned_coach_id
    if coach_id and coach_id != current_user.id:
        await get_notification_service(db).notify(
            user_id=coach_id,
            notification_type=NotificationType.ASSESSMENT_COMPLETED,
            title="Assessment completed",
            message=f"{access.business.name} scored {assessment.percentage}% ({assessment.health_status})",
            business_id=access.business_id,
            link=f"/assessment/{assessment.id}",
        )

    await db.commit()
    await db.refresh(assessment)

    logger.info(f"Assessment {assessment.id} for business {access.business_id}: {assessment.percentage}%")
    return assessment


@router.get("/businesses/{business_id}/assessments", response_model=schemas.AssessmentListResponse)
async def list_assessments(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """Assessment history for a business, newest first."""
    condition = Assessment.business_id == access.business_id
    count_result = await db.execute(select(func.count(Assessment.id)).where(condition))

    result = await db.execute(
        select(Assessment)
        .where(condition)
        .order_by(Assessment.completed_at.desc(), Assessment.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return schemas.AssessmentListResponse(
        assessments=result.scalars().all(),
        count=count_result.scalar() or 0,
    )


@router.get("/assessments/{assessment_id}", response_model=schemas.AssessmentResponse)
async def get_assessment(
    assessment_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Assessment).where(Assessment.id == assessment_id))
    assessment = result.scalar_one_or_none()
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")

    await resolve_business_access(db, current_user, assessment.business_id)
    return assessment

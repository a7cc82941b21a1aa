"""
Assessment scoring.

Pure functions from submitted answers ({question_id: option_value}) to
engine scores, an overall percentage, a health status, the revenue stage
and the strengths, gaps and recommendations shown on the results page.
Nothing here touches the database.
"""
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Union

from app.assessments.questions import ENGINES, ENGINES_BY_ID, QUESTIONS, QUESTIONS_BY_ID, TOTAL_MAX_SCORE
from app.models.assessment import HealthStatus

# Percentage floors, checked top down
HEALTH_THRESHOLDS = [
    (80, HealthStatus.THRIVING),
    (70, HealthStatus.STRONG),
    (60, HealthStatus.STABLE),
    (50, HealthStatus.BUILDING),
]

# Annual revenue ceilings per stage; Mastery above the last
REVENUE_STAGES = [
    (250_000, "Foundation"),
    (1_000_000, "Traction"),
    (3_000_000, "Scaling"),
    (5_000_000, "Optimization"),
    (10_000_000, "Leadership"),
]
TOP_REVENUE_STAGE = "Mastery"

STAGE_RECOMMENDATIONS = {
    "Foundation": ["Focus on proving your business model", "Establish consistent revenue streams"],
    "Traction": ["Build repeatable systems", "Hire your first key employees"],
    "Scaling": ["Develop management team", "Implement advanced systems"],
    "Optimization": ["Improve margins before adding volume", "Build a second line of leadership"],
    "Leadership": ["Shift your time to strategy and capital allocation", "Formalise board-level reporting"],
    "Mastery": ["Plan succession and exit options", "Invest in new growth platforms"],
}

STRENGTH_THRESHOLD = 80
IMPROVEMENT_THRESHOLD = 50
MAX_LISTED = 5


class AssessmentError(ValueError):
    """Answers that cannot be scored."""


@dataclass
class EngineScore:
    engine_id: str
    score: int
    max: int

    @property
    def percentage(self) -> int:
        return _round_half_up(self.score / self.max * 100) if self.max else 0

    def as_dict(self) -> Dict[str, int]:
        return {"score": self.score, "max": self.max, "percentage": self.percentage}


@dataclass
class AssessmentResult:
    engine_scores: Dict[str, EngineScore]
    total_score: int
    total_max: int
    percentage: int
    health_status: str
    revenue_stage: Optional[str]
    strengths: List[str] = field(default_factory=list)
    improvement_areas: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate_answers(answers: Mapping[str, str]) -> None:
    """Every question answered once with one of its options."""
    unknown = sorted(set(answers) - set(QUESTIONS_BY_ID))
    if unknown:
        raise AssessmentError(f"Unknown questions: {', '.join(unknown)}")

    missing = [q.id for q in QUESTIONS if q.id not in answers]
    if missing:
        plural = "s" if len(missing) > 1 else ""
        raise AssessmentError(f"Please answer all questions. {len(missing)} question{plural} remaining.")

    for question_id, value in answers.items():
        try:
            QUESTIONS_BY_ID[question_id].option(value)
        except KeyError:
            raise AssessmentError(f"Invalid answer for {question_id}: {value}")


def score_engines(answers: Mapping[str, str]) -> Dict[str, EngineScore]:
    scores = {engine.id: EngineScore(engine.id, 0, engine.max_score) for engine in ENGINES}
    for question_id, value in answers.items():
        question = QUESTIONS_BY_ID[question_id]
        scores[question.engine].score += question.option(value).points
    return scores


def health_status(percentage: float) -> str:
    for floor, status in HEALTH_THRESHOLDS:
        if percentage >= floor:
            return status.value
    return HealthStatus.STRUGGLING.value


def revenue_stage(annual_revenue: Optional[Union[Decimal, float, int]]) -> Optional[str]:
    """Stage from annual revenue. None when revenue is unknown."""
    if annual_revenue is None:
        return None
    for ceiling, stage in REVENUE_STAGES:
        if annual_revenue < ceiling:
            return stage
    return TOP_REVENUE_STAGE


def _ranked(engine_scores: Dict[str, EngineScore], reverse: bool) -> List[EngineScore]:
    order = {engine.id: i for i, engine in enumerate(ENGINES)}
    sign = -1 if reverse else 1
    return sorted(engine_scores.values(), key=lambda s: (sign * s.percentage, order[s.engine_id]))


def identify_strengths(engine_scores: Dict[str, EngineScore]) -> List[str]:
    return [
        ENGINES_BY_ID[s.engine_id].name
        for s in _ranked(engine_scores, reverse=True)
        if s.percentage >= STRENGTH_THRESHOLD
    ][:MAX_LISTED]


def identify_improvements(engine_scores: Dict[str, EngineScore]) -> List[str]:
    return [
        ENGINES_BY_ID[s.engine_id].name
        for s in _ranked(engine_scores, reverse=False)
        if s.percentage < IMPROVEMENT_THRESHOLD
    ][:MAX_LISTED]


def generate_recommendations(engine_scores: Dict[str, EngineScore], stage: Optional[str]) -> List[str]:
    recommendations = list(STAGE_RECOMMENDATIONS.get(stage, []))
    weakest = _ranked(engine_scores, reverse=False)[0]
    recommendations.append(f"Priority focus: improve the {ENGINES_BY_ID[weakest.engine_id].name}")
    return recommendations[:MAX_LISTED]


def score_assessment(
    answers: Mapping[str, str],
    annual_revenue: Optional[Union[Decimal, float, int]] = None,
) -> AssessmentResult:
    """Validate and score a full set of answers."""
    validate_answers(answers)
    engine_scores = score_engines(answers)

    total = sum(s.score for s in engine_scores.values())
    percentage = _round_half_up(total / TOTAL_MAX_SCORE * 100)
    stage = revenue_stage(annual_revenue)

    return AssessmentResult(
        engine_scores=engine_scores,
        total_score=total,
        total_max=TOTAL_MAX_SCORE,
        percentage=percentage,
        health_status=health_status(percentage),
        revenue_stage=stage,
        strengths=identify_strengths(engine_scores),
        improvement_areas=identify_improvements(engine_scores),
        recommendations=generate_recommendations(engine_scores, stage),
    )

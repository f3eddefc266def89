from fastapi import APIRouter

from pulse.dependencies import Scope, Store
from pulse.insights import compute_trend, detect_patterns, weekly_chart
from pulse.schemas import InsightsResponse, OnboardingStatus

router = APIRouter(prefix="/api", tags=["insights"])


@router.get("/insights", response_model=InsightsResponse)
async def get_insights(scope: Scope, store: Store):
    """Weekly average, week-over-week trend, chart points and detected patterns."""
    entries = await store.list_entries(scope)
    return InsightsResponse(
        summary=compute_trend(entries),
        chart=weekly_chart(entries),
        patterns=detect_patterns(entries),
    )


@router.get("/onboarding", response_model=OnboardingStatus)
async def get_onboarding_status(scope: Scope, store: Store):
    return OnboardingStatus(scope=scope, onboarded=await store.is_onboarded(scope))


@router.post("/onboarding/complete", response_model=OnboardingStatus)
async def complete_onboarding(scope: Scope, store: Store):
    await store.complete_onboarding(scope)
    return OnboardingStatus(scope=scope, onboarded=True)

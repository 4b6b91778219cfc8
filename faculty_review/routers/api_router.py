from fastapi import APIRouter
from faculty_review.routers import (
    teacher_evaluation, reviews, term_state, terms, reports
)

# Centralized API router hub: routers are aggregated here and
# main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(teacher_evaluation.router)
api_router.include_router(reviews.router)
api_router.include_router(term_state.router)
api_router.include_router(terms.router)
api_router.include_router(reports.router)

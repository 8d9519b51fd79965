from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from auth import require_admin, student_view
from database import get_db, User, Profile, Budget, STUDENT
from errors import NotFoundError
from router import get_profile_service
from schemas import (
    ProfileUpdate,
    DashboardResponse,
    DashboardData,
    DashboardStats,
    StudentListResponse,
    StudentListData,
    StudentResponse,
    StudentData,
)
from services import ProfileService

admin_router = APIRouter(dependencies=[Depends(require_admin)])


def get_student(db: Session, student_id: str) -> User:
    student = (
        db.query(User).filter(User.id == student_id, User.role == STUDENT).first()
    )
    if not student:
        raise NotFoundError("Student not found")
    return student


@admin_router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard_stats(db: Session = Depends(get_db)):
    stats = DashboardStats(
        total_students=db.query(User).filter(User.role == STUDENT).count(),
        total_profiles=db.query(Profile).count(),
        total_budgets=db.query(Budget).count(),
        active_budgets=db.query(Budget).filter(Budget.is_active.is_(True)).count(),
        total_locked_savings=db.query(func.sum(Profile.locked_savings)).scalar() or 0.0,
    )
    return DashboardResponse(data=DashboardData(stats=stats))


@admin_router.get("/students", response_model=StudentListResponse)
async def get_all_students(db: Session = Depends(get_db)):
    students = (
        db.query(User)
        .filter(User.role == STUDENT)
        .order_by(User.created_at.desc())
        .all()
    )
    profiles = {profile.user_id: profile for profile in db.query(Profile).all()}
    active_budgets = {}
    for budget in db.query(Budget).filter(Budget.is_active.is_(True)).all():
        active_budgets.setdefault(budget.user_id, []).append(budget)

    views = [
        student_view(
            student, profiles.get(student.id), active_budgets.get(student.id, [])
        )
        for student in students
    ]
    return StudentListResponse(data=StudentListData(students=views, total=len(views)))


@admin_router.get("/students/{student_id}", response_model=StudentResponse)
async def get_student_by_id(student_id: str, db: Session = Depends(get_db)):
    student = get_student(db, student_id)
    profile = db.query(Profile).filter(Profile.user_id == student.id).first()
    budgets = (
        db.query(Budget)
        .filter(Budget.user_id == student.id)
        .order_by(Budget.week_number)
        .all()
    )
    return StudentResponse(data=StudentData(student=student_view(student, profile, budgets)))


@admin_router.put("/students/{student_id}/profile", response_model=StudentResponse)
async def update_student_profile(
    student_id: str,
    changes: ProfileUpdate,
    db: Session = Depends(get_db),
    service: ProfileService = Depends(get_profile_service),
):
    student = get_student(db, student_id)
    summary = service.update_profile(student.id, changes.model_dump(exclude_unset=True))
    return StudentResponse(
        message="Student profile updated successfully",
        data=StudentData(
            student=student_view(student, summary.profile, summary.budgets)
        ),
    )

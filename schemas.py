from pydantic import BaseModel, constr
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional

from database import STUDENT


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class UserBase(CamelModel):
    email: constr(min_length=3, max_length=254)


class UserCreate(UserBase):
    password: constr(min_length=1)
    first_name: constr(min_length=1, max_length=100)
    last_name: constr(min_length=1, max_length=100)
    role: str = STUDENT
    university: Optional[str] = None
    city: Optional[str] = None
    currency: Optional[str] = None
    stipend_amount: Optional[float] = None
    disbursement_frequency: Optional[str] = None
    savings_goal_pct: Optional[float] = None
    weeks: Optional[int] = None


class UserLogin(UserBase):
    password: constr(min_length=1)


class UserOut(UserBase):
    id: str
    first_name: str
    last_name: str
    role: str
    provider: Optional[str] = None
    created_at: Optional[datetime] = None


class ProfileUpdate(CamelModel):
    university: Optional[str] = None
    city: Optional[str] = None
    currency: Optional[str] = None
    stipend_amount: Optional[float] = None
    disbursement_frequency: Optional[str] = None
    savings_goal_pct: Optional[float] = None
    weeks: Optional[int] = None


class ProfileOut(CamelModel):
    id: int
    user_id: str
    university: Optional[str] = None
    city: Optional[str] = None
    currency: str
    stipend_amount: float
    disbursement_frequency: str
    savings_goal_pct: float
    locked_savings: float
    weeks: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BudgetOut(CamelModel):
    id: int
    user_id: str
    week_number: int
    total_budget: float
    spent_amount: float
    start_date: datetime
    end_date: datetime
    is_active: bool


class VerificationOut(CamelModel):
    total_budgets: float
    plus_locked_savings: float
    equals_stipend: float
    is_valid: bool


class CalculationsOut(CamelModel):
    total_stipend: float
    locked_savings: float
    remaining_for_budgets: float
    weekly_budget: float
    total_weekly_budgets: float
    verification: VerificationOut


class ProfileData(CamelModel):
    profile: ProfileOut
    budgets: List[BudgetOut]
    calculations: CalculationsOut


class ProfileResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: ProfileData


class StudentOut(UserOut):
    profile: Optional[ProfileOut] = None
    budgets: List[BudgetOut] = []


class AuthData(CamelModel):
    user: StudentOut
    token: str


class AuthResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: AuthData


class MeData(CamelModel):
    user: StudentOut


class MeResponse(CamelModel):
    success: bool = True
    data: MeData


class DashboardStats(CamelModel):
    total_students: int
    total_profiles: int
    total_budgets: int
    active_budgets: int
    total_locked_savings: float


class DashboardData(CamelModel):
    stats: DashboardStats


class DashboardResponse(CamelModel):
    success: bool = True
    data: DashboardData


class StudentListData(CamelModel):
    students: List[StudentOut]
    total: int


class StudentListResponse(CamelModel):
    success: bool = True
    data: StudentListData


class StudentData(CamelModel):
    student: StudentOut


class StudentResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: StudentData

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic import EmailStr, StringConstraints
from datetime import datetime
from uuid import UUID
from typing import Optional, List, Annotated

# JSON field names are camelCase on the wire, snake_case in Python
_camel_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

Tag = Annotated[str, StringConstraints(min_length=1)]


class CamelModel(BaseModel):
    model_config = _camel_config


# --- Auth ---

class RegisterRequest(CamelModel):
    name: str = Field(min_length=2)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)  # bcrypt input limit


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(CamelModel):
    refresh_token: Optional[str] = None


# --- Preferences ---

class PreferencesUpdate(CamelModel):
    goals: List[Tag] = Field(default_factory=list)
    training_types: List[Tag] = Field(default_factory=list)


class PreferencesResponse(CamelModel):
    goals: List[str] = Field(default_factory=list)
    training_types: List[str] = Field(default_factory=list)


class PreferencesEnvelope(CamelModel):
    preferences: PreferencesResponse


# --- Users ---

class UserResponse(CamelModel):
    """Public user representation, never includes the password hash."""
    id: UUID
    name: str
    email: str
    avatar_url: Optional[str] = None
    preferences: Optional[PreferencesResponse] = None
    created_at: datetime
    updated_at: datetime


class UserEnvelope(CamelModel):
    user: UserResponse


class AuthResponse(CamelModel):
    user: UserResponse
    access_token: str
    refresh_token: str


# --- Exercises ---

class ExerciseCreate(CamelModel):
    name: str = Field(min_length=2)
    description: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)
    completed: Optional[bool] = None


class ExerciseUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2)
    description: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)
    completed: Optional[bool] = None


class ExerciseToggle(CamelModel):
    completed: Optional[bool] = None


class ExerciseResponse(CamelModel):
    id: UUID
    workout_id: UUID
    name: str
    description: Optional[str] = None
    order: int
    completed: bool
    created_at: datetime
    updated_at: datetime


class ExerciseEnvelope(CamelModel):
    exercise: ExerciseResponse


# --- Workouts ---

class WorkoutCreate(CamelModel):
    day_of_week: int = Field(ge=0, le=6)
    time: str = Field(pattern=TIME_PATTERN)
    name: str = Field(min_length=2)
    description: Optional[str] = None
    exercises: Optional[List[ExerciseCreate]] = None


class WorkoutUpdate(CamelModel):
    """Partial update of workout metadata; exercises are managed separately."""
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    name: Optional[str] = Field(default=None, min_length=2)
    description: Optional[str] = None


class WorkoutSummary(CamelModel):
    id: UUID
    name: str
    day_of_week: int
    time: str


class HistoryEntry(CamelModel):
    id: UUID
    workout_id: UUID
    completed_at: datetime


class HistoryItem(HistoryEntry):
    workout: WorkoutSummary


class HistoryEnvelope(CamelModel):
    history: List[HistoryItem]


class WorkoutResponse(CamelModel):
    id: UUID
    user_id: UUID
    day_of_week: int
    time: str
    name: str
    description: Optional[str] = None
    completed: bool
    exercises: List[ExerciseResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class WorkoutDetail(WorkoutResponse):
    history: List[HistoryEntry] = Field(default_factory=list)


class WorkoutEnvelope(CamelModel):
    workout: WorkoutResponse


class WorkoutDetailEnvelope(CamelModel):
    workout: WorkoutDetail


class WorkoutListEnvelope(CamelModel):
    workouts: List[WorkoutResponse]


# --- Shopping ---

class ShoppingItemCreate(CamelModel):
    name: str = Field(min_length=1)
    quantity: Optional[str] = None
    purchased: Optional[bool] = None


class ShoppingItemUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[str] = None
    purchased: Optional[bool] = None


class ShoppingItemToggle(CamelModel):
    purchased: Optional[bool] = None


class ShoppingItemResponse(CamelModel):
    id: UUID
    user_id: UUID
    name: str
    quantity: Optional[str] = None
    purchased: bool
    created_at: datetime
    updated_at: datetime


class ShoppingItemEnvelope(CamelModel):
    item: ShoppingItemResponse


class ShoppingListEnvelope(CamelModel):
    items: List[ShoppingItemResponse]

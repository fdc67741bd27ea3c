from pydantic import BaseModel, ConfigDict, Field


class TargetUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_user_id: str = Field(alias="targetUserId", min_length=1)


class ActionRequest(TargetUserRequest):
    action: str


class UpdateLocationRequest(BaseModel):
    latitude: float
    longitude: float


class UpdatePreferencesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    min_age: int | None = Field(default=None, alias="minAge")
    max_age: int | None = Field(default=None, alias="maxAge")
    max_distance: int | None = Field(default=None, alias="maxDistance")
    is_profile_visible: bool | None = Field(default=None, alias="isProfileVisible")
    is_onboarding_completed: bool | None = Field(default=None, alias="isOnboardingCompleted")

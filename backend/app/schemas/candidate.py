from pydantic import BaseModel, Field, field_validator


class CandidateContact(BaseModel):
    tg_username: str | None = None
    email: str | None = None
    phone: str | None = None

    @field_validator("tg_username", "email", "phone", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        # Store rows may carry "" for unset fields; keep "unset" distinguishable.
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CandidateCard(BaseModel):
    slug: str
    display_name: str
    desired_role: str | None = None
    english_level: str | None = None
    expected_salary_min_cny: int | None = None
    expected_salary_max_cny: int | None = None
    availability_days: int | None = None
    timezone: str | None = None
    bc_experience: bool = False
    summary: str | None = None
    unlocked_contact: bool = False
    skills: list[str] = Field(default_factory=list)


class CandidateDetail(CandidateCard):
    contact: CandidateContact | None = None


class CandidateListFilter(BaseModel):
    company_id: int
    q: str | None = None
    skill: str | None = None
    english: str | None = None
    salary_min: int | None = None
    salary_max: int | None = None
    availability_days_max: int | None = None
    bc_experience: bool | None = None
    limit: int = 20
    offset: int = 0

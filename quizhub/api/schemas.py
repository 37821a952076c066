"""Request bodies.

Field names are snake_case in Python and camelCase on the wire. Range and
business checks live in the services so every entry point shares them; these
models only fix the shape of a payload.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def changes(self) -> Dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


# ============================================================================
# Quiz sessions and history
# ============================================================================


class SessionSettingsPayload(CamelModel):
    shuffle_questions: bool = True
    show_explanation: bool = True
    allow_review: bool = True


class StartSessionRequest(CamelModel):
    category_id: str
    difficulty: Optional[str] = None
    time_limit: Optional[int] = None
    question_count: Optional[int] = None
    question_type: str = "mcq"
    settings: Optional[SessionSettingsPayload] = None


class AnswerRequest(CamelModel):
    question_id: str
    selected_answer: str
    time_spent: int = 0


class CreateHistoryRequest(CamelModel):
    session_id: str


# ============================================================================
# Categories
# ============================================================================


class CategoryCreate(CamelModel):
    name: str
    description: str
    icon: Optional[str] = None
    color: Optional[str] = None
    difficulty: str = "beginner"
    estimated_time: int = 30
    is_active: bool = True


class CategoryUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    difficulty: Optional[str] = None
    estimated_time: Optional[int] = None
    is_active: Optional[bool] = None


# ============================================================================
# Questions
# ============================================================================


class OptionPayload(CamelModel):
    text: str
    is_correct: bool = False


class TestCasePayload(CamelModel):
    input: str = ""
    expected_output: str = ""
    description: str = ""


class QuestionContentPayload(CamelModel):
    """Kind-specific parts of a question, sent flat alongside the common fields."""

    options: List[OptionPayload] = Field(default_factory=list)
    code_snippet: str = ""
    language: str = "javascript"
    expected_output: str = ""
    test_cases: List[TestCasePayload] = Field(default_factory=list)
    analysis_type: str = "output"
    hints: List[str] = Field(default_factory=list)
    starter_code: str = ""


class QuestionCreate(QuestionContentPayload):
    text: str
    category_id: str
    type: str = "mcq"
    correct_answer: str
    difficulty: str = "medium"
    points: int = 1
    explanation: str = ""
    tags: List[str] = Field(default_factory=list)
    status: str = "draft"


class QuestionUpdate(CamelModel):
    text: Optional[str] = None
    category_id: Optional[str] = None
    correct_answer: Optional[str] = None
    difficulty: Optional[str] = None
    points: Optional[int] = None
    explanation: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[str] = None
    options: Optional[List[OptionPayload]] = None
    code_snippet: Optional[str] = None
    language: Optional[str] = None
    expected_output: Optional[str] = None
    test_cases: Optional[List[TestCasePayload]] = None
    analysis_type: Optional[str] = None
    hints: Optional[List[str]] = None
    starter_code: Optional[str] = None


# ============================================================================
# Coding challenges and submissions
# ============================================================================


class ExamplePayload(CamelModel):
    input: str
    output: str
    explanation: str = ""


class ChallengeCreate(CamelModel):
    title: str
    description: str
    problem_statement: str
    difficulty: str = "beginner"
    points: int = 10
    time_limit: int = 0
    examples: List[ExamplePayload] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    hints: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    sample_input: str = ""
    sample_output: str = ""
    reference_solution: str = ""
    language: str = "javascript"
    category_id: Optional[str] = None
    status: str = "active"
    is_active: bool = True


class ChallengeUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    problem_statement: Optional[str] = None
    difficulty: Optional[str] = None
    points: Optional[int] = None
    time_limit: Optional[int] = None
    examples: Optional[List[ExamplePayload]] = None
    constraints: Optional[List[str]] = None
    hints: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    sample_input: Optional[str] = None
    sample_output: Optional[str] = None
    reference_solution: Optional[str] = None
    language: Optional[str] = None
    category_id: Optional[str] = None
    status: Optional[str] = None
    is_active: Optional[bool] = None


class SelfAssessmentPayload(CamelModel):
    confidence: Optional[int] = None
    difficulty: Optional[int] = None
    time_estimate: Optional[int] = None
    notes: str = ""


class SubmitCodeRequest(CamelModel):
    code: str
    language: str
    self_assessment: Optional[SelfAssessmentPayload] = None


class ReviewCommentPayload(CamelModel):
    line: Optional[int] = None
    comment: str
    type: str = "suggestion"


class ReviewCriterionPayload(CamelModel):
    name: str
    score: float
    max_score: float
    feedback: str = ""


class ReviewRequest(CamelModel):
    score: int
    feedback: str = ""
    comments: List[ReviewCommentPayload] = Field(default_factory=list)
    criteria: List[ReviewCriterionPayload] = Field(default_factory=list)


class CodingSubmissionRequest(CamelModel):
    challenge_id: str
    code: str
    language: str
    time_spent: int = 0


# ============================================================================
# Users
# ============================================================================


class UserCreate(CamelModel):
    name: str
    email: str
    role: str = "student"


class UserUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

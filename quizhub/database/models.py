"""Data models for the QuizHub document store."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Dict, List, Optional, Union


class QuestionKind:
    """Question kinds."""

    MCQ = "mcq"
    PROGRAM_TRACE = "program-trace"
    CODING = "coding"

    ALL = (MCQ, PROGRAM_TRACE, CODING)


class QuestionStatus:
    """Lifecycle status for questions and coding challenges."""

    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"

    ALL = (DRAFT, ACTIVE, INACTIVE)


class SessionStatus:
    """Quiz session states."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    EXPIRED = "expired"

    ALL = (IN_PROGRESS, COMPLETED, ABANDONED, EXPIRED)

    # No transition leaves a terminal state
    TERMINAL = (COMPLETED, ABANDONED, EXPIRED)


class SubmissionStatus:
    """Challenge submission workflow states."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    REVIEWED = "reviewed"
    REJECTED = "rejected"

    ALL = (DRAFT, SUBMITTED, UNDER_REVIEW, REVIEWED, REJECTED)


class CodingSubmissionStatus:
    """Coding submission states, derived from the review score."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVISION = "needs_revision"

    ALL = (SUBMITTED, UNDER_REVIEW, APPROVED, REJECTED, NEEDS_REVISION)


# ============================================================================
# Users and categories
# ============================================================================


@dataclass
class User:
    """Represents a platform user in the directory."""

    id: str
    name: str
    email: str
    role: str = "student"
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Category:
    """Represents a topic grouping of questions."""

    id: str
    name: str
    description: str
    icon: str = "BookOpen"
    color: str = "#667eea"
    is_active: bool = True
    question_count: int = 0
    difficulty: str = "beginner"
    estimated_time: int = 30  # minutes
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# Questions
# ============================================================================


@dataclass
class QuestionOption:
    """A multiple-choice option."""

    text: str
    is_correct: bool = False


@dataclass
class McqContent:
    """Content of a multiple-choice question."""

    KIND: ClassVar[str] = QuestionKind.MCQ

    options: List[QuestionOption] = field(default_factory=list)


@dataclass
class ProgramTestCase:
    """An input/output pair shown alongside a program-trace question."""

    input: str = ""
    expected_output: str = ""
    description: str = ""


@dataclass
class ProgramTraceContent:
    """Content of a question asking what a code snippet does."""

    KIND: ClassVar[str] = QuestionKind.PROGRAM_TRACE

    code_snippet: str = ""
    language: str = "javascript"
    expected_output: str = ""
    test_cases: List[ProgramTestCase] = field(default_factory=list)
    analysis_type: str = "output"
    hints: List[str] = field(default_factory=list)


@dataclass
class CodingContent:
    """Content of a coding question."""

    KIND: ClassVar[str] = QuestionKind.CODING

    language: str = "javascript"
    starter_code: str = ""
    hints: List[str] = field(default_factory=list)


QuestionContent = Union[McqContent, ProgramTraceContent, CodingContent]


@dataclass
class QuestionStats:
    """Running statistics for a question."""

    total_attempts: int = 0
    correct_attempts: int = 0
    average_time: float = 0.0

    @property
    def success_rate(self) -> int:
        """Percentage of attempts answered correctly."""
        if self.total_attempts == 0:
            return 0
        return round(self.correct_attempts / self.total_attempts * 100)


@dataclass
class Question:
    """Represents a question in the bank."""

    id: str
    text: str
    category_id: str
    content: QuestionContent
    correct_answer: str
    difficulty: str = "medium"
    points: int = 1
    explanation: str = ""
    tags: List[str] = field(default_factory=list)
    status: str = QuestionStatus.DRAFT
    created_by: Optional[str] = None
    stats: QuestionStats = field(default_factory=QuestionStats)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def kind(self) -> str:
        """Question kind, derived from the content variant."""
        return self.content.KIND


# ============================================================================
# Quiz sessions
# ============================================================================


@dataclass
class SessionQuestion:
    """Snapshot of a question taken when the session started."""

    question_id: str
    question_text: str
    correct_answer: str
    options: List[QuestionOption] = field(default_factory=list)
    explanation: str = ""
    difficulty: str = "medium"
    points: int = 1
    kind: str = QuestionKind.MCQ
    code_snippet: Optional[str] = None
    language: Optional[str] = None


@dataclass
class SessionAnswer:
    """A recorded answer; overwritten when the question is answered again."""

    question_id: str
    selected_answer: str
    is_correct: bool
    time_spent: int = 0  # seconds
    answered_at: Optional[datetime] = None


@dataclass
class SessionScore:
    """Score summary for a session."""

    total_questions: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    unanswered_questions: int = 0
    total_points: int = 0
    earned_points: int = 0
    percentage: int = 0


@dataclass
class SessionSettings:
    """Presentation settings chosen at session start."""

    shuffle_questions: bool = True
    show_explanation: bool = True
    allow_review: bool = True


@dataclass
class QuizSession:
    """Represents a timed quiz attempt."""

    id: str
    session_id: str
    user_id: str
    category_id: str
    questions: List[SessionQuestion]
    started_at: datetime
    time_limit: int  # seconds
    time_remaining: int
    status: str = SessionStatus.IN_PROGRESS
    answers: List[SessionAnswer] = field(default_factory=list)
    completed_at: Optional[datetime] = None
    score: SessionScore = field(default_factory=SessionScore)
    difficulty: str = "mixed"
    settings: SessionSettings = field(default_factory=SessionSettings)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        """Whether the session has left the in-progress state."""
        return self.status in SessionStatus.TERMINAL

    @property
    def duration(self) -> Optional[int]:
        """Whole seconds between start and completion."""
        if self.completed_at is None:
            return None
        return int((self.completed_at - self.started_at).total_seconds())

    def find_question(self, question_id: str) -> Optional[SessionQuestion]:
        """Look up a snapshotted question by its source id."""
        for question in self.questions:
            if question.question_id == question_id:
                return question
        return None

    def find_answer(self, question_id: str) -> Optional[SessionAnswer]:
        """Look up the recorded answer for a question."""
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None


# ============================================================================
# Attempt history
# ============================================================================


@dataclass
class DifficultyTally:
    """Attempted and correct counts for one difficulty."""

    attempted: int = 0
    correct: int = 0


@dataclass
class PerformanceMetrics:
    """Timing and difficulty metrics for an attempt."""

    average_time_per_question: int = 0
    fastest_question: int = 0
    slowest_question: int = 0
    difficulty_breakdown: Dict[str, DifficultyTally] = field(
        default_factory=lambda: {
            "easy": DifficultyTally(),
            "medium": DifficultyTally(),
            "hard": DifficultyTally(),
        }
    )


@dataclass
class QuestionAnalysis:
    """Per-question outcome recorded in an attempt history."""

    question_id: str
    question_text: str
    difficulty: str
    points: int
    selected_answer: Optional[str]
    correct_answer: str
    is_correct: bool
    time_spent: int
    was_skipped: bool


@dataclass
class Improvement:
    """Delta versus the previous attempt in the same category."""

    score_change: int = 0
    time_change: int = 0
    rank_change: int = 0
    is_personal_best: bool = False
    previous_best: int = 0


@dataclass
class AttemptHistory:
    """Point-in-time record of a finished quiz session."""

    id: str
    user_id: str
    session_ref: str
    session_id: str
    category_id: str
    completed_at: datetime
    duration: int
    status: str
    score: SessionScore
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    question_analysis: List[QuestionAnalysis] = field(default_factory=list)
    improvement: Improvement = field(default_factory=Improvement)
    created_at: Optional[datetime] = None


# ============================================================================
# Coding challenges and submissions
# ============================================================================


@dataclass
class ChallengeExample:
    """A worked example attached to a challenge."""

    input: str
    output: str
    explanation: str = ""


@dataclass
class ChallengeStats:
    """Aggregate submission statistics for a challenge."""

    total_submissions: int = 0
    approved_submissions: int = 0
    average_score: float = 0.0
    average_time_spent: float = 0.0

    @property
    def approval_rate(self) -> int:
        """Percentage of submissions approved."""
        if self.total_submissions == 0:
            return 0
        return round(self.approved_submissions / self.total_submissions * 100)


@dataclass
class CodingChallenge:
    """Represents a coding challenge definition."""

    id: str
    title: str
    description: str
    problem_statement: str
    difficulty: str = "beginner"
    points: int = 10
    time_limit: int = 0  # minutes, 0 means no limit
    examples: List[ChallengeExample] = field(default_factory=list)
    constraints: List[str] = field(default_factory=list)
    hints: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    sample_input: str = ""
    sample_output: str = ""
    reference_solution: str = ""
    language: str = "javascript"
    category_id: Optional[str] = None
    status: str = QuestionStatus.ACTIVE
    is_active: bool = True
    created_by: Optional[str] = None
    last_modified_by: Optional[str] = None
    stats: ChallengeStats = field(default_factory=ChallengeStats)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ReviewComment:
    """A line comment left by a reviewer."""

    line: Optional[int]
    comment: str
    type: str = "suggestion"


@dataclass
class ReviewCriterion:
    """A rubric line in a review."""

    name: str
    score: float
    max_score: float
    feedback: str = ""


@dataclass
class SubmissionReview:
    """Review written by an administrator."""

    reviewed_by: str
    reviewed_at: datetime
    score: int
    feedback: str = ""
    comments: List[ReviewComment] = field(default_factory=list)
    criteria: List[ReviewCriterion] = field(default_factory=list)


@dataclass
class SelfAssessment:
    """Student's own assessment attached to a submission."""

    confidence: Optional[int] = None
    difficulty: Optional[int] = None
    time_estimate: Optional[int] = None
    notes: str = ""


@dataclass
class ChallengeSubmission:
    """A student's versioned submission for a challenge."""

    id: str
    challenge_id: str
    student_id: str
    code: str
    language: str
    status: str = SubmissionStatus.DRAFT
    review: Optional[SubmissionReview] = None
    time_spent: int = 0  # minutes
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    version: int = 1
    is_latest: bool = True
    self_assessment: SelfAssessment = field(default_factory=SelfAssessment)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CodingSubmission:
    """A single-step code submission graded by score."""

    id: str
    challenge_id: str
    student_id: str
    code: str
    language: str
    status: str = CodingSubmissionStatus.SUBMITTED
    review: Optional[SubmissionReview] = None
    submitted_at: Optional[datetime] = None
    time_spent: int = 0  # minutes
    attempt_number: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

"""Constants for QuizHub."""

# Roles
ROLE_STUDENT = "student"
ROLE_ADMIN = "admin"
ROLES = (ROLE_STUDENT, ROLE_ADMIN)

# Question settings
QUESTION_DIFFICULTIES = ("easy", "medium", "hard")
QUESTION_TEXT_MAX_LENGTH = 1000
OPTION_TEXT_MAX_LENGTH = 500
EXPLANATION_MAX_LENGTH = 2000
MIN_POINTS = 1
MAX_POINTS = 100
MIN_MCQ_OPTIONS = 2
DEFAULT_QUESTION_POINTS = 1

# Program-trace settings
PROGRAM_LANGUAGES = ("javascript", "python", "java", "cpp", "c", "csharp", "php", "ruby", "go", "rust")
ANALYSIS_TYPES = ("output", "error", "complexity", "logic", "syntax", "behavior")

# Quiz session settings
SESSION_DIFFICULTIES = ("easy", "medium", "hard", "mixed")
DIFFICULTY_MIXED = "mixed"
SELECTED_ANSWER_MAX_LENGTH = 500
MAX_TIME_SPENT_PER_ANSWER = 3600  # seconds

# Category settings
CATEGORY_DIFFICULTIES = ("beginner", "intermediate", "advanced")
CATEGORY_NAME_MAX_LENGTH = 100
CATEGORY_DESCRIPTION_MAX_LENGTH = 500
DEFAULT_CATEGORY_ICON = "BookOpen"
DEFAULT_CATEGORY_COLOR = "#667eea"
DEFAULT_ESTIMATED_TIME = 30  # minutes
MIN_ESTIMATED_TIME = 1
MAX_ESTIMATED_TIME = 300

# Coding challenge settings
CHALLENGE_DIFFICULTIES = ("beginner", "intermediate", "advanced")
SUBMISSION_LANGUAGES = ("javascript", "python", "java", "cpp", "c", "html", "css", "sql", "other")
CODE_MIN_LENGTH = 10
CODE_MAX_LENGTH = 10000
FEEDBACK_MAX_LENGTH = 2000
COMMENT_TYPES = ("suggestion", "error", "praise", "question")
APPROVED_SCORE_THRESHOLD = 80
NEEDS_REVISION_SCORE_THRESHOLD = 60

# Analytics
TRENDS_DEFAULT_DAYS = 30
ANALYTICS_MAX_PERIOD_DAYS = 365
RECENT_ATTEMPTS_LIMIT = 5
TOP_PERFORMERS_LIMIT = 10
EXPORT_FORMATS = ("json", "csv")
EXPORT_CSV_HEADER = ["Date", "Category", "Score", "Correct", "Duration", "Status", "Performance Grade"]
HISTORY_SORT_FIELDS = ("completedAt", "score.percentage", "duration")

# Error messages
ERROR_GENERIC = "Server error"
ERROR_AUTH_REQUIRED = "Authentication required"
ERROR_ADMIN_ONLY = "Admin access required"
ERROR_CATEGORY_NOT_FOUND = "Category not found"
ERROR_CATEGORY_INACTIVE = "Category not found or inactive"
ERROR_CATEGORY_EXISTS = "Category with this name already exists"
ERROR_QUESTION_NOT_FOUND = "Question not found"
ERROR_QUESTION_NOT_IN_SESSION = "Question not found in this quiz session"
ERROR_NO_QUESTIONS = "No questions available for the selected criteria"
ERROR_SESSION_ACTIVE = "You already have an active quiz session for this category"
ERROR_SESSION_NOT_ACTIVE = "Quiz session not found or not active"
ERROR_SESSION_NOT_FOUND = "Quiz session not found"
ERROR_SESSION_EXPIRED = "Quiz session has expired"
ERROR_NO_ACTIVE_SESSION = "No active quiz session found for this category"
ERROR_RESULTS_NOT_FOUND = "Quiz results not found"
ERROR_HISTORY_EXISTS = "Attempt history already exists for this session"
ERROR_HISTORY_SESSION_NOT_FOUND = "Completed quiz session not found"
ERROR_ATTEMPT_NOT_FOUND = "Attempt not found"
ERROR_ATTEMPT_FORBIDDEN = "Access denied"
ERROR_CHALLENGE_NOT_FOUND = "Coding challenge not found"
ERROR_CHALLENGE_INACTIVE = "Coding challenge not found or inactive"
ERROR_SUBMISSION_NOT_FOUND = "Submission not found"
ERROR_SUBMISSION_FORBIDDEN = "Not authorized to view this submission"
ERROR_USER_NOT_FOUND = "User not found"
ERROR_USER_EXISTS = "User with this email already exists"

# MCQ validation messages
ERROR_MCQ_MIN_OPTIONS = "MCQ questions must have at least 2 options"
ERROR_MCQ_ONE_CORRECT = "MCQ questions must have exactly one correct option"
ERROR_MCQ_ANSWER_MISMATCH = "Correct answer must match one of the options"
ERROR_PROGRAM_SNIPPET = "Program-based questions must have a code snippet"
ERROR_PROGRAM_OUTPUT = "Program-based questions must have an expected output"

"""Pydantic models for quiz definitions authored on a lesson step."""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..errors import DefinitionError
from ..grading.gaps import DEFAULT_SEPARATOR, count_gaps, extract_correct_answers


class QuestionType(str, Enum):
    """Question kinds that can appear in a quiz."""

    SINGLE_CHOICE = "single_choice"
    MEDIA_QUESTION = "media_question"
    MULTIPLE_CHOICE = "multiple_choice"
    SHORT_ANSWER = "short_answer"
    MEDIA_OPEN_QUESTION = "media_open_question"
    LONG_TEXT = "long_text"
    FILL_BLANK = "fill_blank"
    TEXT_COMPLETION = "text_completion"
    MATCHING = "matching"
    IMAGE_CONTENT = "image_content"


class DisplayMode(str, Enum):
    """How questions are presented to the learner."""

    ONE_BY_ONE = "one_by_one"
    ALL_AT_ONCE = "all_at_once"


class QuestionBase(BaseModel):
    """Fields shared by every question kind."""

    id: str = Field(..., description="Question identifier, unique within the quiz")
    points: int = Field(default=1, ge=0, description="Points shown to the author")
    order_index: int = Field(default=0, description="Authored position")
    explanation: str | None = Field(None, description="Shown after the answer is checked")
    question_text: str = Field(default="", description="Prompt shown above the answer input")
    content_text: str = Field(default="", description="Optional passage or rich-text body")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        """Accept numeric ids from older payloads."""
        return str(v)

    @field_validator("question_text", "content_text", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        """Treat a null body as empty text."""
        return "" if v is None else v

    @property
    def kind(self) -> QuestionType:
        return QuestionType(self.question_type)  # type: ignore[attr-defined]


class ChoiceOption(BaseModel):
    """A selectable option of a choice question."""

    id: str | None = None
    text: str = Field(..., description="Option text (may contain HTML)")
    is_correct: bool = False
    letter: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str | None:
        return None if v is None else str(v)


class ChoiceQuestionBase(QuestionBase):
    """Shared option handling for choice questions."""

    options: list[ChoiceOption]

    @field_validator("options", mode="before")
    @classmethod
    def coerce_options(cls, v: Any) -> Any:
        """Early quizzes stored options as bare strings."""
        if isinstance(v, list):
            return [{"text": item} if isinstance(item, str) else item for item in v]
        return v

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: list[ChoiceOption]) -> list[ChoiceOption]:
        """Ensure there is a real choice to make."""
        if len(v) < 2:
            raise ValueError("Choice questions need at least two options")
        return v


class SingleChoiceQuestion(ChoiceQuestionBase):
    """One correct option; also used for questions with attached media."""

    question_type: Literal["single_choice", "media_question"]
    correct_answer: int = Field(..., ge=0, description="Index of the correct option")
    media_url: str | None = None

    @model_validator(mode="after")
    def validate_correct_answer(self) -> "SingleChoiceQuestion":
        """Ensure the correct index points at an option."""
        if self.correct_answer >= len(self.options):
            raise ValueError(f"correct_answer {self.correct_answer} is out of range")
        return self


class MultipleChoiceQuestion(ChoiceQuestionBase):
    """Any number of correct options; graded by exact set equality."""

    question_type: Literal["multiple_choice"]
    correct_answer: set[int] = Field(..., description="Indices of all correct options")

    @model_validator(mode="after")
    def validate_correct_answer(self) -> "MultipleChoiceQuestion":
        """Ensure every correct index points at an option."""
        out_of_range = sorted(i for i in self.correct_answer if i < 0 or i >= len(self.options))
        if out_of_range:
            raise ValueError(f"correct_answer indices out of range: {out_of_range}")
        return self


class ShortAnswerQuestion(QuestionBase):
    """Free text compared against a pipe-delimited list of accepted variants."""

    question_type: Literal["short_answer", "media_open_question"]
    correct_answer: str = Field(default="", description="Accepted answers separated by '|'")
    media_url: str | None = None

    @property
    def accepted_variants(self) -> list[str]:
        """Accepted answers, trimmed and lower-cased."""
        variants = (part.strip().lower() for part in self.correct_answer.split("|"))
        return [v for v in variants if v]


class LongTextQuestion(QuestionBase):
    """Essay-style answer graded later by a teacher."""

    question_type: Literal["long_text"]
    expected_length: int | None = Field(None, ge=0)
    keywords: list[str] = Field(default_factory=list)


class GapQuestion(QuestionBase):
    """Passage with ``[[...]]`` gaps, typed in or picked from distractors."""

    question_type: Literal["fill_blank", "text_completion"]
    correct_answer: list[str] = Field(default_factory=list, description="Expected answer per gap")
    gap_separator: str = Field(default=DEFAULT_SEPARATOR, description="Separator between gap candidates")

    @field_validator("correct_answer", mode="before")
    @classmethod
    def wrap_single_answer(cls, v: Any) -> Any:
        """Older payloads store a single gap answer as a plain string."""
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("gap_separator", mode="before")
    @classmethod
    def default_separator(cls, v: Any) -> Any:
        return v or DEFAULT_SEPARATOR

    @property
    def passage(self) -> str:
        """Text that carries the gap markers."""
        return self.content_text or self.question_text

    @property
    def gap_count(self) -> int:
        return count_gaps(self.passage)

    @model_validator(mode="after")
    def align_correct_answer(self) -> "GapQuestion":
        """Fill the answer vector from the passage, or check it matches the gap count."""
        if not self.correct_answer:
            self.correct_answer = extract_correct_answers(self.passage, self.gap_separator)
        elif len(self.correct_answer) != self.gap_count:
            raise ValueError(
                f"correct_answer has {len(self.correct_answer)} entries "
                f"but the passage has {self.gap_count} gaps"
            )
        return self


class MatchingPair(BaseModel):
    """Left item and the right item it belongs with."""

    left: str
    right: str


class MatchingQuestion(QuestionBase):
    """Pairs to connect; the authored order is the correct mapping."""

    question_type: Literal["matching"]
    matching_pairs: list[MatchingPair] = Field(default_factory=list)
    correct_answer: list[int] | None = Field(None, description="Identity permutation over the pairs")

    @model_validator(mode="after")
    def identity_answer(self) -> "MatchingQuestion":
        """The correct answer is always left i -> right i."""
        identity = list(range(len(self.matching_pairs)))
        if self.correct_answer is not None and self.correct_answer != identity:
            raise ValueError("Matching correct_answer must be the identity permutation")
        self.correct_answer = identity
        return self


class ImageContentQuestion(QuestionBase):
    """Display-only image between questions; never scored."""

    question_type: Literal["image_content"]
    media_url: str | None = None


Question = Annotated[
    Union[
        SingleChoiceQuestion,
        MultipleChoiceQuestion,
        ShortAnswerQuestion,
        LongTextQuestion,
        GapQuestion,
        MatchingQuestion,
        ImageContentQuestion,
    ],
    Field(discriminator="question_type"),
]


class QuizDefinition(BaseModel):
    """A quiz as authored on a lesson step."""

    title: str = Field(default="Quiz", description="Quiz title")
    display_mode: DisplayMode = Field(default=DisplayMode.ONE_BY_ONE, description="Sequential or feed display")
    questions: list[Question] = Field(default_factory=list, description="Questions in display order")

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v: Any) -> Any:
        return v or "Quiz"

    @field_validator("display_mode", mode="before")
    @classmethod
    def default_display_mode(cls, v: Any) -> Any:
        return v or DisplayMode.ONE_BY_ONE

    @classmethod
    def from_content_text(cls, content_text: str | None) -> "QuizDefinition":
        """
        Parse the serialized definition stored on a step.

        Args:
            content_text: JSON text of the definition; empty means an empty quiz

        Returns:
            Parsed QuizDefinition

        Raises:
            DefinitionError: If the text is not a valid quiz definition
        """
        try:
            return cls.model_validate_json(content_text or "{}")
        except ValidationError as e:
            raise DefinitionError(f"Invalid quiz definition: {e}") from e

    @property
    def has_long_text(self) -> bool:
        """Whether a teacher has to grade part of this quiz."""
        return any(q.question_type == QuestionType.LONG_TEXT.value for q in self.questions)

    def question_by_id(self, question_id: str) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)

    def index_of(self, question_id: str) -> int | None:
        """Position of a question, or None if it is not part of this quiz."""
        for idx, q in enumerate(self.questions):
            if q.id == question_id:
                return idx
        return None

    def item_span(self, index: int) -> int:
        """How many numbered items the question at ``index`` occupies."""
        q = self.questions[index]
        if q.question_type == QuestionType.IMAGE_CONTENT.value:
            return 0
        if isinstance(q, GapQuestion):
            return max(q.gap_count, 1)
        return 1

    @property
    def item_count(self) -> int:
        """Total numbered items; each gap counts separately, images do not count."""
        return sum(self.item_span(i) for i in range(len(self.questions)))

    def display_range(self, index: int) -> tuple[int, int]:
        """
        First and last item number for the question at ``index``.

        Args:
            index: Question position

        Returns:
            Inclusive (first, last) 1-based numbers; equal for single-item questions
        """
        first = 1 + sum(self.item_span(i) for i in range(index))
        return first, first + max(self.item_span(index), 1) - 1


class QuizStep(BaseModel):
    """Lesson step that carries a quiz definition as serialized JSON."""

    id: int | str
    title: str | None = None
    content_type: str | None = None
    content_text: str | None = Field(None, description="Serialized QuizDefinition")

    def definition(self) -> QuizDefinition:
        return QuizDefinition.from_content_text(self.content_text)

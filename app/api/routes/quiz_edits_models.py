from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from app.quizzes import editing
from app.quizzes.types import QuizDraft

QuestionId = Annotated[str, Field(min_length=1, max_length=64)]
OptionId = Annotated[str, Field(min_length=1, max_length=64)]


class AddQuestionEdit(BaseModel):
    op: Literal["add_question"]
    question_id: QuestionId | None = None

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.add_question(draft, question_id=self.question_id)


class RemoveQuestionEdit(BaseModel):
    op: Literal["remove_question"]
    question_id: QuestionId

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.remove_question(draft, question_id=self.question_id)


class SetQuestionTextEdit(BaseModel):
    op: Literal["set_question_text"]
    question_id: QuestionId
    text: str = Field(max_length=5000)

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_question_text(draft, question_id=self.question_id, text=self.text)


class SetQuestionDescriptionEdit(BaseModel):
    op: Literal["set_question_description"]
    question_id: QuestionId
    description: str | None = Field(default=None, max_length=5000)

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_question_description(
            draft,
            question_id=self.question_id,
            description=self.description,
        )


class SetQuestionImageEdit(BaseModel):
    op: Literal["set_question_image"]
    question_id: QuestionId
    image_url: str | None = Field(default=None, max_length=2048)

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_question_image(draft, question_id=self.question_id, image_url=self.image_url)


class SetQuestionRandomizeOptionsEdit(BaseModel):
    op: Literal["set_question_randomize_options"]
    question_id: QuestionId
    enabled: bool

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_question_randomize_options(
            draft,
            question_id=self.question_id,
            enabled=self.enabled,
        )


class AddOptionEdit(BaseModel):
    op: Literal["add_option"]
    question_id: QuestionId
    option_id: OptionId | None = None

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.add_option(draft, question_id=self.question_id, option_id=self.option_id)


class RemoveOptionEdit(BaseModel):
    op: Literal["remove_option"]
    question_id: QuestionId
    option_id: OptionId

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.remove_option(draft, question_id=self.question_id, option_id=self.option_id)


class SetOptionTextEdit(BaseModel):
    op: Literal["set_option_text"]
    question_id: QuestionId
    option_id: OptionId
    text: str = Field(max_length=2000)

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_option_text(
            draft,
            question_id=self.question_id,
            option_id=self.option_id,
            text=self.text,
        )


class ToggleOptionCorrectEdit(BaseModel):
    op: Literal["toggle_option_correct"]
    question_id: QuestionId
    option_id: OptionId

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.toggle_option_correct(draft, question_id=self.question_id, option_id=self.option_id)


class SetOptionImageEdit(BaseModel):
    op: Literal["set_option_image"]
    question_id: QuestionId
    option_id: OptionId
    image_url: str | None = Field(default=None, max_length=2048)

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_option_image(
            draft,
            question_id=self.question_id,
            option_id=self.option_id,
            image_url=self.image_url,
        )


class SetGradingSystemEdit(BaseModel):
    op: Literal["set_grading_system"]
    enabled: bool

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_grading_system(draft, enabled=self.enabled)


class SetNegativeMarkingEdit(BaseModel):
    op: Literal["set_negative_marking"]
    enabled: bool
    points: int | float | str | None = None

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_negative_marking(draft, enabled=self.enabled, points=self.points)


class UpdateSettingsEdit(BaseModel):
    op: Literal["update_settings"]
    changes: dict[str, Any] = Field(default_factory=dict)

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.update_settings(draft, **self.changes)


class SetTitleEdit(BaseModel):
    op: Literal["set_title"]
    title: str = Field(max_length=300)

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_title(draft, title=self.title)


class SetDescriptionEdit(BaseModel):
    op: Literal["set_description"]
    description: str = Field(max_length=5000)

    def apply(self, draft: QuizDraft) -> QuizDraft:
        return editing.set_description(draft, description=self.description)


QuizEditOperation = Annotated[
    Union[
        AddQuestionEdit,
        RemoveQuestionEdit,
        SetQuestionTextEdit,
        SetQuestionDescriptionEdit,
        SetQuestionImageEdit,
        SetQuestionRandomizeOptionsEdit,
        AddOptionEdit,
        RemoveOptionEdit,
        SetOptionTextEdit,
        ToggleOptionCorrectEdit,
        SetOptionImageEdit,
        SetGradingSystemEdit,
        SetNegativeMarkingEdit,
        UpdateSettingsEdit,
        SetTitleEdit,
        SetDescriptionEdit,
    ],
    Field(discriminator="op"),
]


class QuizEditsRequest(BaseModel):
    edits: list[QuizEditOperation] = Field(min_length=1, max_length=200)

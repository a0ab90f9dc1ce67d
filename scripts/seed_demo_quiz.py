from __future__ import annotations

import argparse
import asyncio

from app.db.session import SessionLocal
from app.quizzes.service import QuizAuthoringService
from app.quizzes.types import Option, Question, QuizDraft, QuizSettings
from app.services.identity import Viewer, ViewerRole
from app.services.user_profiles import UserProfileService


def build_demo_draft() -> QuizDraft:
    return QuizDraft(
        title="Seeded Advanced Quiz",
        description="Timer, negative marking and randomization demo",
        questions=(
            Question(
                id="q1",
                text="What is **2+2**?",
                options=(
                    Option(id="o1", text="3"),
                    Option(id="o2", text="4", is_correct=True),
                ),
                randomize_options=True,
            ),
            Question(
                id="q2",
                text="Solve $\\sqrt{9}$",
                options=(
                    Option(id="o3", text="3", is_correct=True),
                    Option(id="o4", text="9"),
                ),
                description="$3^2 = 9$",
            ),
        ),
        settings=QuizSettings(
            timer=5,
            negative_marking=True,
            negative_marking_points=0.5,
            points_per_question=2,
            randomize_questions=True,
        ),
    )


async def _seed(*, instructor_id: str, email: str | None, display_name: str | None) -> str:
    viewer = Viewer(
        user_id=instructor_id,
        role=ViewerRole.INSTRUCTOR,
        email=email,
        display_name=display_name,
    )
    async with SessionLocal.begin() as session:
        await UserProfileService.upsert_profile(
            session,
            viewer=viewer,
            display_name=display_name,
            email=email,
        )
        quiz, _report = await QuizAuthoringService.create_quiz(
            session,
            viewer=viewer,
            draft=build_demo_draft(),
        )
    return quiz.id


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a demo quiz owned by an instructor.")
    parser.add_argument("--instructor-id", required=True)
    parser.add_argument("--email")
    parser.add_argument("--display-name")
    args = parser.parse_args()

    quiz_id = asyncio.run(
        _seed(
            instructor_id=args.instructor_id,
            email=args.email,
            display_name=args.display_name,
        )
    )
    print(f"seed_demo_quiz: created quiz_id={quiz_id}")  # noqa: T201
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

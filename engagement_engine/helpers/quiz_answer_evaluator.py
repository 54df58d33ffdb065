from typing import Dict, List, Tuple

from engagement_engine.models import Question, QuestionType


def evaluate_quiz_answers(
    questions: List[Question],
    answers: Dict[str, str],
) -> Tuple[int, int]:
    """
    Scores recorded answers against the quiz questions and returns:
    - score: points of multiple-choice questions answered exactly right
    - max_score: points of every question, short-answer included

    Answers are keyed by the question id as a string. An mcq answer is
    correct only if it equals the stored option index string ("0", "1", ...),
    with no case folding or numeric parsing. Short-answer questions never
    add to the automatic score; they wait for a human grade.
    """

    score = 0
    max_score = 0

    for question in questions:
        max_score += question.points

        if question.question_type != QuestionType.MCQ or question.correct_answer is None:
            continue

        if answers.get(str(question.id)) == question.correct_answer:
            score += question.points

    return score, max_score


def has_manual_questions(questions: List[Question]) -> bool:
    return any(q.question_type == QuestionType.SHORT_ANSWER for q in questions)

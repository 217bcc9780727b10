"""Prompt construction for quiz generation."""

from __future__ import annotations

from .models import QuizSettings

__all__ = ["SYSTEM_PROMPT", "VERIFY_PROMPT", "VERIFY_EXPECTED", "build_quiz_prompt"]


SYSTEM_PROMPT = "You generate high-quality multiple-choice study questions."

VERIFY_EXPECTED = "API key is working correctly"
VERIFY_PROMPT = f"Respond with exactly: '{VERIFY_EXPECTED}'"


def build_quiz_prompt(settings: QuizSettings) -> str:
    """Return the generation instruction for ``settings``.

    Pure function of its input: the same settings always give the same text.
    The ``explanation`` field is only requested when explanations are on.
    """
    count = settings.question_count
    requirements = [
        f"Generate exactly {count} questions",
        "Each question must have exactly 4 options (A, B, C, D)",
        "Only ONE option should be correct",
        "Questions should test comprehension, analysis, and application of "
        "the content",
        "Vary difficulty levels (easy, medium, hard)",
        "Make distractors (wrong answers) plausible but clearly incorrect",
        "Questions should be clear, concise, and unambiguous",
        "Cover different aspects of the content",
    ]
    if settings.show_explanations:
        requirements.append(
            "Provide a clear, educational explanation for each correct answer"
        )
    numbered = "\n".join(
        f"{idx}. {line}" for idx, line in enumerate(requirements, start=1)
    )

    explanation_field = (
        ',\n    "explanation": "Clear explanation of why this answer is '
        'correct"'
        if settings.show_explanations
        else ""
    )
    example = (
        "[\n"
        "  {\n"
        '    "question": "Clear, specific question text ending with a '
        'question mark?",\n'
        '    "options": ["Option A text", "Option B text", "Option C text", '
        '"Option D text"],\n'
        f'    "correctAnswer": 0{explanation_field}\n'
        "  }\n"
        "]"
    )
    fields = (
        '"question" (string), "options" (array of exactly 4 strings), '
        '"correctAnswer" (integer 0-3)'
    )
    if settings.show_explanations:
        fields += ', "explanation" (string)'

    return (
        "You are an expert quiz generator. Create exactly "
        f"{count} high-quality multiple-choice questions based on the "
        "provided content.\n\n"
        'CONTENT TO ANALYZE:\n"""\n'
        f"{settings.content}\n"
        '"""\n\n'
        f"REQUIREMENTS:\n{numbered}\n\n"
        "OUTPUT FORMAT:\n"
        "Return ONLY a single valid JSON array of objects with the fields "
        f"{fields}, using this exact structure:\n\n"
        f"{example}\n\n"
        "IMPORTANT:\n"
        "- correctAnswer must be 0, 1, 2, or 3 (corresponding to array index)\n"
        "- Do not include any text before or after the JSON array\n"
        "- Ensure all JSON is properly formatted and escaped\n"
        "- Questions must be directly related to the provided content\n"
        "- Avoid questions that require external knowledge not in the content"
    )

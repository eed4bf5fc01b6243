"""
Purpose:
- Build the fixed two-message prompt (system + user) sent with every image.
- One builder per request variant: structured insights, or a free-text question.

Notes:
- Each call is a fresh single-turn exchange; nothing from earlier answers is carried over.
"""

from __future__ import annotations
from typing import Dict, List

from ..core.options import DescriptionLength, Language

# Exactly one persona/compliance sentence rides along with each system prompt.
COMPLIANCE_SENTENCE = "It is very important for my career that you follow these instructions exactly."

INSIGHTS_SYSTEM_PROMPT = (
    "You are an AI assistant that generates clear, accurate insights about images. "
    + COMPLIANCE_SENTENCE
)

QUESTION_SYSTEM_PROMPT = (
    "You are a helpful assistant. Your task is to answer questions about the provided image "
    "accurately and concisely. " + COMPLIANCE_SENTENCE
)

# How much text each length choice asks for
LENGTH_GUIDANCE: Dict[DescriptionLength, str] = {
    DescriptionLength.SHORT: "a short description of two or three sentences",
    DescriptionLength.MEDIUM: "a medium-length description of one or two paragraphs",
    DescriptionLength.LONG: "a long, detailed description of several paragraphs",
}

Message = Dict[str, str]

def build_insights_messages(language: Language, length: DescriptionLength) -> List[Message]:
    user_prompt = (
        f"Analyze this image and write {LENGTH_GUIDANCE[length]} of it in {language.label}. "
        f"Highlight the main subjects, the setting, and any notable details. "
        f"Respond only in {language.label}."
    )
    return [
        {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]

def build_question_messages(question: str) -> List[Message]:
    # question goes through verbatim
    return [
        {"role": "system", "content": QUESTION_SYSTEM_PROMPT},
        {"role": "user", "content": f"{question}"},
    ]

"""
Provider prompts for the AI-backed steps.
"""

from typing import Dict

from .steps import StepType

PROMPT_TEMPLATES: Dict[StepType, str] = {
    StepType.SUMMARIZE: (
        "Summarize the following text in 3-5 concise sentences. Maintain clarity "
        "and key meaning. Do not add any preamble or explanation, just provide "
        "the summary.\n\nText to summarize:\n{text}"
    ),
    StepType.EXTRACT_KEY_POINTS: (
        "Extract the key insights from the following text as clear bullet points. "
        "Return only the bullet points without any preamble or explanation.\n\n"
        "Text to analyze:\n{text}"
    ),
    StepType.TAG_CATEGORY: (
        "Analyze the following text and assign it to the most appropriate category "
        "or categories. Return only the category names separated by commas, "
        "without any explanation.\n\n"
        "Common categories include: Business, Technology, Health, Education, "
        "Entertainment, Science, Politics, Sports, Finance, Lifestyle, etc.\n\n"
        "Text to categorize:\n{text}"
    ),
    StepType.SENTIMENT_ANALYSIS: (
        "Analyze the sentiment of the following text and return ONLY one of these "
        "three words: Positive, Neutral, or Negative. Do not include any "
        "explanation or additional text.\n\nText to analyze:\n{text}"
    ),
    StepType.REWRITE_PROFESSIONAL: (
        "Rewrite the following text in a professional, polished tone suitable for "
        "business communication. Maintain the core message but improve clarity, "
        "grammar, and professionalism. Return only the rewritten text without any "
        "preamble.\n\nText to rewrite:\n{text}"
    ),
    StepType.GENERATE_TITLE: (
        "Generate a clear, concise, and engaging title for the following text. "
        "The title should be no more than 10 words. Return only the title without "
        "quotes or any explanation.\n\nText:\n{text}"
    ),
}


def build_prompt(step: StepType, text: str) -> str:
    """
    Build the provider prompt for an AI-backed step.

    Raises:
        KeyError: If the step has no prompt (local steps)
    """
    # str.replace keeps braces in user text from being read as format fields
    return PROMPT_TEMPLATES[step].replace("{text}", text)

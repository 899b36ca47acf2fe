"""Resume parsing prompt templates."""

from agents.common.prompts import (
    PROFESSIONAL_TONE,
    JSON_OUTPUT,
    NO_INVENTION,
    RESUME_PARSING_INSTRUCTIONS,
)


RESUME_PARSER_SYSTEM_PROMPT = f"""{PROFESSIONAL_TONE}

You are an expert resume parser. You turn resume text into structured data with
high accuracy and attention to detail.

{NO_INVENTION}
"""


RESUME_PARSE_INSTRUCTIONS = f"""{RESUME_PARSING_INSTRUCTIONS}

{JSON_OUTPUT}
Use exactly these top-level keys: personalInfo, workExperience, education, skills,
summary, totalExperience."""

# Resumes longer than this are truncated before prompting
MAX_RESUME_CHARS = 30000

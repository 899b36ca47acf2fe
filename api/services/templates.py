"""
Email template rendering.

Placeholders look like {name}. Known placeholders (and their aliases) are
replaced per recipient; any placeholder still left afterwards is removed so
no literal {token} ever reaches a candidate.
"""

import html
import re
from dataclasses import dataclass
from typing import Optional

PLACEHOLDER_PATTERN = re.compile(r"\{[^{}]+\}")

# Canonical field -> every placeholder spelling that maps to it
PLACEHOLDER_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name", "candidateName", "candidate_name"),
    "email": ("email", "candidateEmail", "candidate_email"),
    "position": ("position", "jobTitle", "job_title"),
    "company": ("company", "companyName", "company_name"),
}

DEFAULT_COMPANY_NAME = "Your Company"

_BULLET_LINE = re.compile(r"^\s*(?:[•*\-]|\d+[.)])\s+(.*)$")


@dataclass(frozen=True)
class RecipientContext:
    """Per-recipient values available to templates."""

    name: str = ""
    email: str = ""
    position: str = ""
    company: str = ""


def has_template_variables(text: Optional[str]) -> bool:
    return bool(text) and bool(PLACEHOLDER_PATTERN.search(text))


def extract_template_variables(text: Optional[str]) -> list[str]:
    """Placeholder names in order of first appearance, without braces."""
    if not text:
        return []
    seen: list[str] = []
    for match in PLACEHOLDER_PATTERN.findall(text):
        name = match[1:-1].strip()
        if name not in seen:
            seen.append(name)
    return seen


def render_template(text: Optional[str], recipient: RecipientContext) -> str:
    """
    Substitute recipient values and strip unmatched placeholders.

    Args:
        text: Template text
        recipient: Values for this recipient

    Returns:
        Rendered text containing no {placeholder} tokens
    """
    if not text:
        return ""

    values = {
        "name": recipient.name,
        "email": recipient.email,
        "position": recipient.position,
        "company": recipient.company,
    }
    lookup = {
        alias: values[field]
        for field, aliases in PLACEHOLDER_ALIASES.items()
        for alias in aliases
    }

    def substitute(match: re.Match) -> str:
        return lookup.get(match.group(0)[1:-1].strip(), "")

    rendered = PLACEHOLDER_PATTERN.sub(substitute, text)
    # A substituted value may itself contain braces; keep stripping until stable
    while PLACEHOLDER_PATTERN.search(rendered):
        rendered = PLACEHOLDER_PATTERN.sub("", rendered)
    return rendered


def format_email_html(content: str) -> str:
    """
    Convert plain-text email content into simple HTML.

    Blank lines separate paragraphs, consecutive bullet lines (•, *, -, or
    "1.") become a list, and single newlines become <br>.
    """
    blocks = re.split(r"\n\s*\n", content.strip()) if content and content.strip() else []
    parts: list[str] = []
    for block in blocks:
        lines = [line for line in block.splitlines() if line.strip()]
        bullets = [_BULLET_LINE.match(line) for line in lines]
        if lines and all(bullets):
            items = "".join(f"<li>{html.escape(m.group(1).strip())}</li>" for m in bullets)
            parts.append(f"<ul>{items}</ul>")
        else:
            body = "<br>".join(html.escape(line.strip()) for line in lines)
            parts.append(f"<p>{body}</p>")

    return (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">'
        + "".join(parts)
        + "</div>"
    )


# ==================== Rejection templates ==================== #

REJECTION_SUBJECT = "Update on your {position} application"

_REJECTION_OPENING = (
    "Hi {name},\n\n"
    "Thank you for your interest in the {position} role at {company} and for the time "
    "you put into your application."
)

_REJECTION_CLOSING = (
    "We'll keep your details on file and encourage you to apply for future openings "
    "that match your experience.\n\n"
    "Best regards,\n{company} Hiring Team"
)

REJECTION_REASON_BODIES: dict[str, str] = {
    "Insufficient Experience": (
        "After careful review, we have decided to move forward with candidates whose "
        "experience more closely matches the level this role requires."
    ),
    "Skills Mismatch": (
        "After reviewing your application, we found that the specific skills this role "
        "needs right now don't closely match your current skill set."
    ),
    "Unsuccessful Assessment": (
        "We reviewed your skills assessment carefully and, unfortunately, we will not be "
        "moving forward with your application at this stage."
    ),
    "Unsuccessful Interview": (
        "We enjoyed speaking with you. After completing our interviews, we have decided "
        "to move forward with other candidates."
    ),
    "Overqualified": (
        "Your background is impressive, and we believe this particular role would not make "
        "full use of your experience."
    ),
    "Position Filled": (
        "We wanted to let you know that the position has now been filled."
    ),
    "Budget Constraints": (
        "Due to budget constraints, we are unable to move forward with this role as "
        "originally planned."
    ),
    "Timeline Mismatch": (
        "Your availability doesn't align with the timeline we need for this role."
    ),
}

_DEFAULT_REJECTION_BODY = (
    "After careful consideration, we have decided to move forward with other candidates "
    "whose qualifications more closely match our current needs."
)


def rejection_template(reason: Optional[str]) -> tuple[str, str]:
    """
    Subject and body template for a rejection with the given reason.

    Unknown or empty reasons use the generic body.

    Returns:
        (subject_template, body_template), both still containing placeholders
    """
    body = REJECTION_REASON_BODIES.get((reason or "").strip(), _DEFAULT_REJECTION_BODY)
    return REJECTION_SUBJECT, f"{_REJECTION_OPENING}\n\n{body}\n\n{_REJECTION_CLOSING}"

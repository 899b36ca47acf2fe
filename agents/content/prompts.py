"""Job content generation prompt templates."""

from agents.common.prompts import PROFESSIONAL_TONE

APPLY_CALL_TO_ACTION = "Ready to make an impact? Click the apply button below!"

CONTENT_SYSTEM_PROMPT = f"""{PROFESSIONAL_TONE}

You write recruiting content for hiring managers: job posts, skills assessments,
interview questions and short job summaries. Be specific to the role and avoid filler."""


JOB_CONTEXT_TEMPLATE = """Job Title: {title}
Role Type: {role_type}
Employment Type: {employment_type}
Experience Level: {experience_level}
Required Skills: {required_skills}
Location Type: {location_type}
Budget: {budget}
Duration: {duration}
Company: {company_name}

Description:
{description}"""


JOB_POST_INSTRUCTIONS = f"""Write an engaging job post in markdown with these sections:
**About the Role**, **What You'll Do**, **What We're Looking For**, **Nice to Have**, **Why Join Us**.
Do not include any application instructions, email addresses or links.
End with exactly: "{APPLY_CALL_TO_ACTION}" """

SKILLS_TEST_INSTRUCTIONS = """Write a practical skills assessment for this role with exactly three questions:
1. A technical challenge grounded in the required skills
2. A problem-solving scenario the candidate would face in the job
3. A communication question about explaining their work
Each question gets one or two sentences of context. Use plain text, numbered 1-3."""

INTERVIEW_QUESTIONS_INSTRUCTIONS = """Write 8 interview questions for this role: 4 technical, 2 behavioural,
2 about role fit. Number them and add a one-line note on what a strong answer shows."""

MINI_DESCRIPTION_INSTRUCTIONS = """Write one factual sentence (at most 15 words) that tells a hiring manager
what this job is: seniority, main function and key context. Not a call to action.
No trailing period."""

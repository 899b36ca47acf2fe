"""Application scoring prompt templates."""

from agents.common.prompts import JSON_OUTPUT

RATING_MIN = 1.0
RATING_MAX = 3.0

SCORING_SYSTEM_PROMPT = """You are an expert technical recruiter with many years of experience
assessing candidates end to end. You weigh every piece of candidate data you are given and
produce fair, evidence-based evaluations that predict on-the-job success."""


SCORING_FRAMEWORK = f"""EVALUATION FRAMEWORK (weights in brackets):
1. Technical competency [30%]: skill alignment, depth of relevant experience, portfolio/GitHub, assessment answers
2. Experience fit [25%]: seniority versus requirements, industry relevance, career progression
3. Communication and engagement [20%]: cover letter quality, clarity of written answers
4. Problem solving and soft skills [15%]: approach shown in answers, initiative, attention to detail
5. Completeness and effort [10%]: how complete and considered the application is

RATING SCALE ({RATING_MIN} - {RATING_MAX}):
- 1.0-1.5: below expectations, significant gaps
- 1.6-2.4: meets expectations, adequate fit with some gaps
- 2.5-3.0: exceeds expectations, standout candidate

Write a 3-4 sentence summary covering key strengths, alignment with the role, notable gaps
and a recommended next step. Then give a precise rating between {RATING_MIN} and {RATING_MAX}.

{JSON_OUTPUT}
Respond with exactly: {{"summary": "<summary>", "rating": <number>}}"""


SCORING_PROMPT_TEMPLATE = """Analyze this job application.

JOB REQUIREMENTS:
- Position: {title}
- Role Type: {role_type}
- Experience Level: {experience_level}
- Employment Type: {employment_type}
- Required Skills: {required_skills}
- Company: {company_name}
- Budget: {budget}
- Duration: {duration}
- Location Type: {location_type}

Job Description:
{description}

CANDIDATE:
- Name: {name}
- Location: {location}
- Available Start Date: {available_start_date}

{experience}
{work_experience}
{education}
{skills}

LINKS:
- Portfolio: {portfolio_url}
- LinkedIn: {linkedin_url}
- GitHub: {github_url}

COVER LETTER:
{cover_letter}

ASSESSMENT ANSWERS:
1. Technical challenge: {answer_1}
2. Problem solving: {answer_2}
3. Communication: {answer_3}

RESUME:
{parsed_resume}

PREVIOUS AI ANALYSIS (reference only):
- Rating: {previous_rating}
- Summary: {previous_summary}

{framework}"""

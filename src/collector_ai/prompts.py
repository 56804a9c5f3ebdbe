"""System prompts and decision tools for the evaluator."""

from __future__ import annotations

from collector_ai.models import Mode
from collector_ai.providers.base import ToolSpec

JOB_BINARY_SYSTEM_PROMPT = """\
You are a job relevance filter. Your task is to quickly decide whether a job \
posting is worth downloading for detailed review, based on the user's job \
search criteria.

DECISION RULES:
- Return download: true if the job COULD be relevant based on the limited card information shown
- Return download: false ONLY if the job is CLEARLY irrelevant (wrong industry, \
wrong role type, obviously unrelated field)
- When uncertain, return true. Reviewing an extra job is better than missing a good one.

You will receive job cards one at a time. Each card has only basic info: \
title, company, location. Make quick decisions based on this limited information.

USER'S CRITERIA:
{criteria}"""

JOB_TRIAGE_SYSTEM_PROMPT = """\
You are a job relevance filter with two-stage evaluation.

STAGE 1 - CARD TRIAGE (limited info: title, company, location):
Use the card_triage tool to make one of three decisions:
- "reject": the job is CLEARLY irrelevant (wrong industry, completely wrong role type, unrelated field)
- "keep": the job CLEARLY matches the criteria
- "maybe": uncertain from the card alone, the full job description is needed

Be CONSERVATIVE with "reject". When in doubt, use "maybe" to request full details.
ALWAYS give a brief reason. For rejections, say WHY the job does not match.

STAGE 2 - FULL EVALUATION (complete job description):
When you receive full job details after a "maybe", use the full_evaluation tool \
to accept or reject based on requirements, responsibilities, qualifications and \
company info. Be specific about which criteria a rejected job fails.

USER'S CRITERIA:
{criteria}"""

PEOPLE_BINARY_SYSTEM_PROMPT = """\
You are a profile filter. Decide whether each profile card is worth keeping, \
based on the criteria below.

You only see LIMITED info: name, headline, location, connection degree. Use the \
people_evaluation tool. Return download: false ONLY when the person is CLEARLY \
irrelevant; when uncertain, return true.

USER'S CRITERIA:
{criteria}"""

PEOPLE_TRIAGE_SYSTEM_PROMPT = """\
You are a profile filter. Evaluate each profile card against the criteria below.

You only see LIMITED info: name, headline, location, connection degree. Use the \
people_card_triage tool:
- "reject": CLEARLY irrelevant per criteria (wrong role type, excluded category)
- "keep": CLEARLY matches criteria
- "maybe": uncertain from the card alone, the full profile is needed

Be conservative with "reject". When uncertain, use "maybe". Always give a brief reason.

USER'S CRITERIA:
{criteria}"""

PEOPLE_FULL_SYSTEM_PROMPT = """\
You are a profile filter. Evaluate the full profile against the criteria below.

You have FULL profile data: current role, past roles, company, experience. Use \
the people_full_evaluation tool:
- accept: true when the person matches the criteria
- accept: false when the person does not fit or hits an exclusion criterion

When borderline, lean toward accepting. Always give a specific reason.

USER'S CRITERIA:
{criteria}"""


def _decision_tool(name: str, description: str, subject: str) -> ToolSpec:
    return ToolSpec(
        name=name,
        description=description,
        input_schema={
            "type": "object",
            "properties": {
                "decision": {
                    "type": "string",
                    "enum": ["reject", "keep", "maybe"],
                    "description": (
                        f"reject=clearly irrelevant, keep=clearly relevant, "
                        f"maybe=need the full {subject} to decide"
                    ),
                },
                "reason": {
                    "type": "string",
                    "description": "Brief explanation for the decision",
                },
            },
            "required": ["decision", "reason"],
        },
    )


def _boolean_tool(name: str, description: str, field: str, meaning: str) -> ToolSpec:
    return ToolSpec(
        name=name,
        description=description,
        input_schema={
            "type": "object",
            "properties": {
                field: {"type": "boolean", "description": meaning},
                "reason": {
                    "type": "string",
                    "description": "Brief explanation for the decision",
                },
            },
            "required": [field],
        },
    )


JOB_EVALUATION_TOOL = _boolean_tool(
    "job_evaluation",
    "Indicate whether this job should be downloaded for detailed review",
    "download",
    "true if the job matches the criteria, false if clearly irrelevant",
)
CARD_TRIAGE_TOOL = _decision_tool(
    "card_triage",
    "Triage a job card based on limited information (title, company, location)",
    "job description",
)
FULL_EVALUATION_TOOL = _boolean_tool(
    "full_evaluation",
    "Final decision after reviewing full job details",
    "accept",
    "true to accept and save the job, false to reject",
)
PEOPLE_EVALUATION_TOOL = _boolean_tool(
    "people_evaluation",
    "Indicate whether this person should be kept",
    "download",
    "true if the person could match the criteria, false if clearly irrelevant",
)
PEOPLE_CARD_TRIAGE_TOOL = _decision_tool(
    "people_card_triage",
    "Triage a person card based on limited information (name, headline, location)",
    "profile",
)
PEOPLE_FULL_EVALUATION_TOOL = _boolean_tool(
    "people_full_evaluation",
    "Final decision after reviewing full profile details",
    "accept",
    "true to accept and save the person, false to reject",
)


class PromptSet:
    """The prompts and tools one mode uses for each kind of evaluation call."""

    def __init__(
        self,
        binary: tuple[str, ToolSpec],
        triage: tuple[str, ToolSpec],
        full: tuple[str, ToolSpec],
        subject: str,
    ) -> None:
        self.binary = binary
        self.triage = triage
        self.full = full
        self.subject = subject


PROMPTS = {
    Mode.JOBS: PromptSet(
        binary=(JOB_BINARY_SYSTEM_PROMPT, JOB_EVALUATION_TOOL),
        triage=(JOB_TRIAGE_SYSTEM_PROMPT, CARD_TRIAGE_TOOL),
        full=(JOB_TRIAGE_SYSTEM_PROMPT, FULL_EVALUATION_TOOL),
        subject="job",
    ),
    Mode.PROFILES: PromptSet(
        binary=(PEOPLE_BINARY_SYSTEM_PROMPT, PEOPLE_EVALUATION_TOOL),
        triage=(PEOPLE_TRIAGE_SYSTEM_PROMPT, PEOPLE_CARD_TRIAGE_TOOL),
        full=(PEOPLE_FULL_SYSTEM_PROMPT, PEOPLE_FULL_EVALUATION_TOOL),
        subject="profile",
    ),
}

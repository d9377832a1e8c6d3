"""Outreach email drafting for a job posting and one of its contacts."""

import logging

from leadgen.core.config import OutreachConfig
from leadgen.core.schemas import ContactRecord, EmailDraft, JobRecord
from leadgen.outreach.llm.base import LLMProvider

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT_TEMPLATE = (
    "You are a professional business development expert writing personalized "
    "outreach emails for {company}, a design subscription service. Write "
    "compelling, personalized emails that feel genuine and not salesy."
)


def build_system_prompt(config: OutreachConfig) -> str:
    return _SYSTEM_PROMPT_TEMPLATE.format(company=config.sender_company)


def build_email_prompt(
    job: JobRecord,
    contact: ContactRecord,
    search_term: str,
    config: OutreachConfig,
) -> str:
    """Assemble the user prompt from sender, recipient and job context."""
    contact_name = contact.first_name or "there"
    contact_title = contact.position or "team member"

    sender_section = (
        "SENDER (Me):\n"
        f"- {config.sender_name} from {config.sender_company}\n"
        "- Offering design subscription services (UX/UI design)\n"
        "- Professional, friendly, direct approach\n"
    )
    recipient_section = (
        "RECIPIENT:\n"
        f"- Name: {contact_name}\n"
        f"- Position: {contact_title}\n"
        f"- Company: {job.company or 'not provided'}\n"
    )
    job_section = (
        "JOB CONTEXT:\n"
        f"- Job Title: {job.title}\n"
        f"- Location: {job.location or 'your location'}\n"
        f"- Workload: {job.workload or 'not specified'}\n"
        f'- Original Search Term: "{search_term}"\n'
    )
    requirements = (
        "REQUIREMENTS:\n"
        "1. Professional yet friendly tone\n"
        "2. Keep it concise (3-4 short paragraphs max)\n"
        "3. Reference the specific job posting naturally\n"
        f"4. Personalize based on their role ({contact_title})\n"
        f"5. Clearly explain {config.sender_company}'s value proposition\n"
        "6. Include a soft call-to-action\n\n"
        "Write the complete email including a subject line."
    )
    return (
        "Write a personalized cold email for the following scenario:\n\n"
        f"{sender_section}\n{recipient_section}\n{job_section}\n{requirements}"
    )


def generate_outreach_email(
    job: JobRecord,
    contact: ContactRecord,
    search_term: str,
    provider: LLMProvider,
    config: OutreachConfig,
) -> EmailDraft:
    """Draft an outreach email. Never raises; failures set success=False and error."""
    logger.info(
        "Generating email for %s %s at %s",
        contact.first_name, contact.last_name, job.company,
    )
    try:
        prompt = build_email_prompt(job, contact, search_term, config)
        content = provider.complete(
            prompt,
            model=config.model,
            system=build_system_prompt(config),
            max_tokens=config.max_tokens,
        )
    except Exception as e:
        logger.warning("Email generation failed for %s", contact.email, exc_info=True)
        return EmailDraft(
            success=False,
            job=job,
            contact=contact,
            error=str(e) or type(e).__name__,
        )

    if not content:
        return EmailDraft(success=False, job=job, contact=contact, error="Empty response from LLM")

    return EmailDraft(success=True, email_content=content, job=job, contact=contact)

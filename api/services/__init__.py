"""
API Services Layer.

Database and vendor operations behind the HTTP routes and Celery tasks.
Every function takes the AsyncSession it works in.
"""

from api.services.templates import (
    render_template,
    has_template_variables,
    extract_template_variables,
    format_email_html,
    rejection_template,
)

from api.services.subscriptions import (
    get_subscription,
    can_create_job,
    can_create_application,
    has_active_access,
    is_trial_active,
    trial_days_remaining,
)

from api.services.applications import (
    create_application,
    get_application,
    list_applications,
    update_manual_rating,
)

from api.services.emails import (
    EmailRecipient,
    StepResult,
    send_bulk_email,
    send_rejection_email,
)

from api.services.pipeline import (
    PipelineOutcome,
    reject,
    unreject,
    move_stage,
    bulk_move_stage,
    bulk_reject,
    list_stages,
)

from api.services.scoring import (
    BatchSummary,
    score_application,
    score_batch,
)

from api.services.resumes import (
    parse_resume,
    validate_resume_upload,
)

from api.services.dashboard import (
    ApplicationStats,
    compute_application_stats,
    compute_job_stats,
    jobs_needing_attention,
    top_candidates,
    get_dashboard,
)

from api.services.inbox import (
    list_threads,
    get_thread_messages,
    mark_thread_read,
    record_inbound_message,
    reconcile_unread_counts,
    remove_duplicate_inbound,
    handle_inbound_email,
)

from api.services.billing_webhooks import (
    verify_signature,
    handle_event,
)

from api.services.exports import (
    applications_to_csv,
    export_filename,
)

from api.services.jobs import (
    create_job,
    get_job,
    list_jobs,
    update_job_status,
    close_job,
    increment_view_count,
    generate_job_content,
    search_jobs,
)

__all__ = [
    # Templates
    "render_template",
    "has_template_variables",
    "extract_template_variables",
    "format_email_html",
    "rejection_template",
    # Subscriptions
    "get_subscription",
    "can_create_job",
    "can_create_application",
    "has_active_access",
    "is_trial_active",
    "trial_days_remaining",
    # Applications
    "create_application",
    "get_application",
    "list_applications",
    "update_manual_rating",
    # Emails
    "EmailRecipient",
    "StepResult",
    "send_bulk_email",
    "send_rejection_email",
    # Pipeline
    "PipelineOutcome",
    "reject",
    "unreject",
    "move_stage",
    "bulk_move_stage",
    "bulk_reject",
    "list_stages",
    # Scoring
    "BatchSummary",
    "score_application",
    "score_batch",
    # Resumes
    "parse_resume",
    "validate_resume_upload",
    # Dashboard
    "ApplicationStats",
    "compute_application_stats",
    "compute_job_stats",
    "jobs_needing_attention",
    "top_candidates",
    "get_dashboard",
    # Inbox
    "list_threads",
    "get_thread_messages",
    "mark_thread_read",
    "record_inbound_message",
    "reconcile_unread_counts",
    "remove_duplicate_inbound",
    "handle_inbound_email",
    # Billing
    "verify_signature",
    "handle_event",
    # Exports
    "applications_to_csv",
    "export_filename",
    # Jobs
    "create_job",
    "get_job",
    "list_jobs",
    "update_job_status",
    "close_job",
    "increment_view_count",
    "generate_job_content",
    "search_jobs",
]

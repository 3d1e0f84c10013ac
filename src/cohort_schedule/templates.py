"""Notification message composition.

Email bodies are jinja2 templates rendered with autoescaping; WhatsApp
messages are positional parameter lists matching the approved templates.
"""

from dataclasses import dataclass

from jinja2 import Environment

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

PRODUCT_NAME = "MentiBY"
DEFAULT_MENTOR_NAME = "A Mentor"
DEFAULT_STUDENT_NAME = "Student"

_LAYOUT = """
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="margin:0;padding:0;background:#f4f4f4;font-family:'Segoe UI',Roboto,sans-serif;">
  <div style="max-width:600px;margin:20px auto;background:#ffffff;border-radius:12px;overflow:hidden;">
    <div style="background:{{ color }};padding:24px;text-align:center;">
      <h1 style="color:#ffffff;margin:0;font-size:24px;">{{ heading }}</h1>
      {% if subheading %}<p style="color:#f1f5f9;margin:8px 0 0 0;font-size:14px;">{{ subheading }}</p>{% endif %}
    </div>
    <div style="padding:24px;color:#334155;font-size:15px;line-height:1.6;">
      {{ content|safe }}
    </div>
    <div style="padding:16px;background:#1f2937;text-align:center;">
      <p style="color:#9ca3af;margin:0;font-size:12px;">{{ footer }}</p>
    </div>
  </div>
</body>
</html>
"""

_RESCHEDULE_COORDINATOR = """
<p>Hi {{ recipient_name }},</p>
<p>A class has been {{ action_label|lower }} by <strong>{{ mentor_name }}</strong>.</p>
<table style="width:100%;border-collapse:collapse;">
  <tr><td style="padding:6px 0;font-weight:600;width:40%;">Cohort</td><td>{{ cohort_name }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Subject</td><td>{{ subject_name }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Original schedule</td>
      <td style="color:#ef4444;text-decoration:line-through;">{{ original_date }} at {{ original_time }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">New schedule</td>
      <td style="color:#16a34a;font-weight:600;">{{ new_date }} at {{ new_time }}</td></tr>
</table>
"""

_RESCHEDULE_STUDENT = """
<p>Hi {{ recipient_name }},</p>
<p>Your upcoming class for <strong>{{ cohort_name }}</strong> has been rescheduled.</p>
<p style="color:#ef4444;text-decoration:line-through;">Previous: {{ original_date }} at {{ original_time }}</p>
<p style="color:#16a34a;font-weight:600;font-size:17px;">New: {{ new_date }} at {{ new_time }}</p>
<p style="text-align:center;">Please update your calendar accordingly.</p>
"""

_SWAP_COORDINATOR = """
<p>Hello {{ recipient_name }},</p>
<p>A mentor swap has been made for an upcoming session.</p>
<table style="width:100%;border-collapse:collapse;">
  <tr><td style="padding:6px 0;font-weight:600;width:40%;">Cohort</td><td>{{ cohort_name }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Date</td><td>{{ session_date }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Time</td><td>{{ session_time }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Subject</td><td>{{ subject_name }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Original mentor</td><td>{{ original_mentor }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">New mentor</td><td><strong>{{ new_mentor }}</strong></td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Swapped by</td><td>{{ swapped_by }}</td></tr>
</table>
<p style="font-size:13px;text-align:center;">This notification is sent to all Super Mentors for tracking purposes.</p>
"""

_SWAP_SUBSTITUTE = """
<p>Hello {{ recipient_name }},</p>
<p>A class originally scheduled for <strong>{{ original_mentor }}</strong> has been assigned to you.</p>
<table style="width:100%;border-collapse:collapse;">
  <tr><td style="padding:6px 0;font-weight:600;width:35%;">Cohort</td><td>{{ cohort_name }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Date</td><td>{{ session_date }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Time</td><td>{{ session_time }}</td></tr>
  <tr><td style="padding:6px 0;font-weight:600;">Subject</td><td>{{ subject_name }}</td></tr>
  {% if subject_topic %}<tr><td style="padding:6px 0;font-weight:600;">Topic</td><td>{{ subject_topic }}</td></tr>{% endif %}
</table>
{% if meeting_link %}
<p style="text-align:center;"><a href="{{ meeting_link }}">Join Session on Teams</a></p>
{% else %}
<p style="text-align:center;color:#6b7280;">Meeting link will be generated soon. Check your dashboard.</p>
{% endif %}
"""


@dataclass(frozen=True)
class Message:
    """Both channel renditions of one notification to one recipient."""

    subject: str
    html: str
    template_name: str
    params: list[str]


def _render(
    body: str, *, heading: str, color: str, footer: str, subheading: str = "", **context
) -> str:
    """Render a body template (escaped) inside the shared email layout."""
    content = _env.from_string(body).render(**context)
    return _env.from_string(_LAYOUT).render(
        heading=heading,
        subheading=subheading,
        color=color,
        footer=footer,
        content=content,
    )


@dataclass(frozen=True)
class RescheduleDetails:
    cohort_name: str
    subject_name: str
    action_label: str
    original_date: str
    original_time: str
    new_date: str
    new_time: str
    mentor_name: str

    @property
    def original_datetime(self) -> str:
        return f"{self.original_date} at {self.original_time}"

    @property
    def new_datetime(self) -> str:
        return f"{self.new_date} at {self.new_time}"

    @property
    def color(self) -> str:
        return "#06b6d4" if self.action_label == "Preponed" else "#f97316"


def reschedule_coordinator_message(
    details: RescheduleDetails, recipient_name: str | None, template_name: str
) -> Message:
    name = recipient_name or "Super Mentor"
    html = _render(
        _RESCHEDULE_COORDINATOR,
        heading=f"Class {details.action_label}",
        subheading=f"{details.cohort_name} - {details.subject_name}",
        color=details.color,
        footer=f"{PRODUCT_NAME} Mentor Dashboard",
        recipient_name=name,
        **vars(details),
    )
    return Message(
        subject=f"Class {details.action_label}: {details.cohort_name} - {details.subject_name}",
        html=html,
        template_name=template_name,
        params=[
            name,
            details.action_label,
            details.cohort_name,
            details.subject_name,
            details.original_datetime,
            details.new_datetime,
            details.mentor_name,
        ],
    )


def reschedule_student_message(
    details: RescheduleDetails, recipient_name: str | None, template_name: str
) -> Message:
    name = recipient_name or DEFAULT_STUDENT_NAME
    html = _render(
        _RESCHEDULE_STUDENT,
        heading="Class Schedule Updated",
        subheading=f"Your {details.subject_name} class has been {details.action_label.lower()}",
        color=details.color,
        footer=f"{PRODUCT_NAME} Learning Platform",
        recipient_name=name,
        **vars(details),
    )
    return Message(
        subject=f"Class Rescheduled: {details.cohort_name} - {details.subject_name}",
        html=html,
        template_name=template_name,
        params=[
            name,
            details.cohort_name,
            details.subject_name,
            details.original_datetime,
            details.new_datetime,
        ],
    )


@dataclass(frozen=True)
class SwapDetails:
    cohort_name: str
    subject_name: str
    subject_topic: str
    session_date: str
    session_time: str
    original_mentor: str
    new_mentor: str
    swapped_by: str
    meeting_link: str


def swap_coordinator_message(
    details: SwapDetails, recipient_name: str | None, template_name: str
) -> Message:
    name = recipient_name or "Super Mentor"
    html = _render(
        _SWAP_COORDINATOR,
        heading="Mentor Swap Alert",
        subheading="A class has been reassigned to a different mentor",
        color="#dc2626",
        footer=f"{PRODUCT_NAME} Super Mentor Notification System",
        recipient_name=name,
        **vars(details),
    )
    return Message(
        subject=f"Mentor Swap Alert: {details.cohort_name} - {details.subject_name}",
        html=html,
        template_name=template_name,
        params=[
            name,
            details.cohort_name,
            details.session_date,
            details.session_time,
            details.subject_name,
            details.original_mentor,
            details.new_mentor,
        ],
    )


def swap_substitute_message(
    details: SwapDetails, recipient_name: str | None, template_name: str
) -> Message:
    name = recipient_name or "Mentor"
    html = _render(
        _SWAP_SUBSTITUTE,
        heading="Class Assigned to You",
        subheading="A session has been swapped to you",
        color="#8b5cf6",
        footer=f"{PRODUCT_NAME}",
        recipient_name=name,
        **vars(details),
    )
    return Message(
        subject=f"Class Assigned to You: {details.cohort_name} - {details.subject_name}",
        html=html,
        template_name=template_name,
        params=[
            name,
            details.cohort_name,
            details.session_date,
            details.session_time,
            details.subject_name,
            details.meeting_link or "Check Dashboard",
        ],
    )

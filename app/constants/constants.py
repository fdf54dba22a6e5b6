"""Constants for user roles, lifecycle statuses, notification priorities and onboarding options."""

from enum import Enum


class UserRole(str, Enum):
    """Enumeration of account roles."""

    client = "client"
    admin = "admin"


class ConsultationStatus(str, Enum):
    """Overall lifecycle of a consultation request."""

    pending = "pending"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"
    confirmed = "confirmed"
    rescheduled = "rescheduled"
    waitlisted = "waitlisted"
    scheduled = "scheduled"
    payment_verified = "payment_verified"
    registered = "registered"


class AdminStatus(str, Enum):
    """Gatekeeper-facing subset of the consultation lifecycle."""

    pending = "pending"
    confirmed = "confirmed"
    rescheduled = "rescheduled"
    waitlisted = "waitlisted"


class PipelineStatus(str, Enum):
    """Sales pipeline position of a consultation request."""

    lead = "lead"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"
    client = "client"


class MeetingStatus(str, Enum):
    """Lifecycle shared by strategy calls and interviews."""

    pending_confirmation = "pending_confirmation"
    confirmed = "confirmed"
    awaiting_new_times = "awaiting_new_times"
    completed = "completed"
    cancelled = "cancelled"


class OnboardingExecutionStatus(str, Enum):
    """Approval state of the 20-question onboarding record."""

    pending_approval = "pending_approval"
    active = "active"


class ApplicationStatus(str, Enum):
    """Status of a job application tracked for a client."""

    applied = "applied"
    review = "review"
    interview = "interview"
    offer = "offer"
    rejected = "rejected"
    withdrawn = "withdrawn"


class NotificationPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class NotificationCategory(str, Enum):
    consultation = "consultation"
    onboarding = "onboarding"
    profile = "profile"
    registration = "registration"
    strategy_call = "strategy_call"
    interview = "interview"
    application = "application"
    resource = "resource"
    contact = "contact"
    mock_session = "mock_session"
    account = "account"
    system = "system"


class ContactRequestStatus(str, Enum):
    """Handling state of a public contact form submission."""

    new = "new"
    in_progress = "in_progress"
    handled = "handled"
    closed = "closed"


class ContactSource(str, Enum):
    contact_form = "contact_form"
    website = "website"
    referral = "referral"


class MockSessionType(str, Enum):
    technical_interview = "Technical Interview"
    behavioral_interview = "Behavioral Interview"
    system_design = "System Design"
    coding_challenge = "Coding Challenge"
    mock_presentation = "Mock Presentation"
    salary_negotiation = "Salary Negotiation"


class MockSessionStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    rescheduled = "rescheduled"


class PreparationLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class RemoteWorkPreference(str, Enum):
    remote = "remote"
    hybrid = "hybrid"
    onsite = "onsite"
    flexible = "flexible"


class ApplicationVolumePreference(str, Enum):
    quality_focused = "quality_focused"
    balanced = "balanced"
    volume_focused = "volume_focused"


# Subjects and copy for application status changes.
# Statuses missing from this table change silently.
APPLICATION_STATUS_NOTIFICATIONS = {
    ApplicationStatus.review: {
        "template": "application_status_update",
        "priority": NotificationPriority.medium,
        "subject": "Your Application is Under Review - Apply Bureau",
        "message": "Your application to {company} is now under review.",
        "next_steps": "We will let you know as soon as the employer responds.",
    },
    ApplicationStatus.interview: {
        "template": "application_status_update",
        "priority": NotificationPriority.high,
        "subject": "Interview Scheduled - Application Update",
        "message": "Great news! {company} wants to interview you for the {role} role.",
        "next_steps": "Check your dashboard for interview details and preparation material.",
    },
    ApplicationStatus.offer: {
        "template": "application_status_update",
        "priority": NotificationPriority.high,
        "subject": "🎉 Great News About Your Application!",
        "message": "Congratulations! You received an offer from {company} for the {role} role.",
        "next_steps": "Your advisor will reach out to help you review and negotiate the offer.",
    },
    ApplicationStatus.rejected: {
        "template": "application_status_update",
        "priority": NotificationPriority.medium,
        "subject": "Application Status Update - Apply Bureau",
        "message": "{company} has decided not to move forward with your application for {role}.",
        "next_steps": "We are already lining up the next opportunities that match your goals.",
    },
    ApplicationStatus.withdrawn: {
        "template": "application_status_update",
        "priority": NotificationPriority.medium,
        "subject": "Application Withdrawal Confirmed - Apply Bureau",
        "message": "Your application to {company} for {role} has been withdrawn.",
        "next_steps": "No further action is needed on this application.",
    },
}

DEFAULT_MEETING_LINK_COPY = "Meeting details will be provided separately."

MAX_PREFERRED_SLOTS = 3

CONTACT_RESPONSE_TIME = "24 hours"

# Coach assigned to a mock session. Anything not listed gets the default.
DEFAULT_MOCK_SESSION_COACH = {
    "name": "Alex Rodriguez",
    "title": "Senior Engineering Manager",
    "experience": "10+ years in tech leadership",
    "specialties": ["System Design", "Technical Leadership", "Salary Negotiation"],
}

MOCK_SESSION_COACHES = {
    MockSessionType.behavioral_interview: {
        "name": "Sarah Chen",
        "title": "HR Director & Career Coach",
        "experience": "8+ years in talent acquisition",
        "specialties": ["Behavioral Interviews", "Career Development", "Communication Skills"],
    },
}

MIN_PASSWORD_LENGTH = 8

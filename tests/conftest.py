import pytest
from httpx import ASGITransport, AsyncClient

from app.constants.constants import UserRole
from app.core.config import Settings
from app.core.database import DatabaseSessionManager
from app.core.security import create_access_token, hash_password
from app.main import create_app
from app.models.user import RegisteredUser
from app.services.ResendEmailClient import EmailDeliveryError

ADMIN_INBOX = "admin-inbox@example.com"


class FakeTransport:
    """Records every rendered email instead of calling Resend."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, to, subject, html, reply_to=None):
        if self.fail:
            raise EmailDeliveryError("delivery disabled in test")
        message = {"to": to, "subject": subject, "html": html, "reply_to": reply_to}
        self.sent.append(message)
        return {"id": f"fake-{len(self.sent)}", "status": "sent", "to": to, "subject": subject}

    def to(self, address):
        return [m for m in self.sent if m["to"] == address]

    def subjects(self, address):
        return [m["subject"] for m in self.to(address)]


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        SECRET_KEY="test-secret",
        ADMIN_NOTIFICATION_EMAIL=ADMIN_INBOX,
        SUPER_ADMIN_EMAIL="advisor@example.com",
        FRONTEND_URL="https://portal.example.com",
        EMAIL_TESTING_MODE=False,
        RESEND_API_KEY="",
    )


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
async def session_manager(settings):
    manager = DatabaseSessionManager.from_settings(settings)
    await manager.init()
    yield manager
    await manager.close()


@pytest.fixture
async def client(settings, session_manager, transport):
    app = create_app(settings, session_manager, transport)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.fixture
def make_user(session_manager):
    async def _make_user(email, role=UserRole.client, password="password123", **fields):
        fields.setdefault("full_name", email.split("@")[0].title())
        fields.setdefault("is_active", True)
        async with session_manager.get_session() as session:
            user = RegisteredUser(
                email=email,
                role=role,
                passcode_hash=hash_password(password),
                **fields,
            )
            session.add(user)
        return user
    return _make_user


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user, settings)}"}
    return _headers


@pytest.fixture
async def admin(make_user):
    return await make_user("advisor@example.com", role=UserRole.admin, full_name="Ada Advisor")


@pytest.fixture
async def admin_headers(admin, auth_headers):
    return auth_headers(admin)


@pytest.fixture
async def client_user(make_user):
    return await make_user("jane@example.com", full_name="Jane Doe", package_tier=2)


@pytest.fixture
async def client_headers(client_user, auth_headers):
    return auth_headers(client_user)


SLOTS = [
    {"date": "2026-11-10", "time": "10:00"},
    {"date": "2026-11-11", "time": "14:30"},
    {"date": "2026-11-12", "time": "09:15"},
]

QUESTIONNAIRE = {
    "target_job_titles": "Product Manager, Senior PM",
    "target_industries": ["Fintech"],
    "target_locations": ["Toronto", "Remote"],
    "remote_work_preference": "remote",
    "target_salary_range": "120k-140k",
    "years_of_experience": 6,
    "key_technical_skills": ["SQL", "Roadmapping"],
    "job_search_timeline": "3 months",
    "career_goals_short_term": "Lead a product team",
    "biggest_career_challenges": ["Interview nerves"],
    "support_areas_needed": ["Resume", "Interview prep"],
}


@pytest.fixture
def slots():
    return [dict(slot) for slot in SLOTS]


@pytest.fixture
def questionnaire():
    return dict(QUESTIONNAIRE)

import os
import sys

# Make the instabids package importable when running pytest from the repo root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings are loaded at import time; provide them before anything imports instabids
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENABLE_MOCK_API", "true")
os.environ.setdefault("MEDIA_UPLOAD_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), ".uploads"))

from datetime import date, datetime, timedelta, timezone

import pytest
from jose import jwt

TODAY = date(2026, 5, 1)


def make_token(user_id="homeowner-1", role="homeowner", secret="test-secret-key"):
    payload = {
        "sub": user_id,
        "role": "authenticated",
        "email": f"{user_id}@example.com",
        "user_metadata": {"role": role},
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id="homeowner-1", role="homeowner"):
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture
def valid_bid_card():
    """Complete, publishable bid card fields (dates relative to TODAY)."""
    return {
        "owner_id": "homeowner-1",
        "title": "Kitchen remodel",
        "description": "Replace cabinets and countertops",
        "status": "published",
        "job_type_id": "renovation",
        "job_category_id": "kitchen",
        "job_size": "medium",
        "zip_code": "78701",
        "timeline_start": "2026-06-01",
        "timeline_end": "2026-07-15",
        "bid_deadline": "2026-05-20",
        "budget_min": 15000,
        "budget_max": 25000,
        "terms_accepted": True,
    }

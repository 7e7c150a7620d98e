# /trustfetch/config.py
from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field

from trustfetch.domain.fetch_service import FailurePolicy


class Settings(BaseModel):
    # env values land in the defaults, so validate them too
    model_config = ConfigDict(validate_default=True)

    # Trust store
    CA_CERT_PATH: str = os.getenv("CA_CERT_PATH", "security/ca.pem")  # relative to cwd

    # Fan-out / failure handling
    FAILURE_POLICY: FailurePolicy = os.getenv("FAILURE_POLICY", "fail_fast")  # type: ignore[assignment]
    MAX_CONCURRENCY: int = Field(default=os.getenv("MAX_CONCURRENCY", "0"), ge=0)  # 0 = one slot per URL

    # Transport
    FOLLOW_REDIRECTS: bool = os.getenv("FOLLOW_REDIRECTS", "true").lower() == "true"


settings = Settings()

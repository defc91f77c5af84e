import os
import logging
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Dict, List
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class PayrollSettings(BaseModel):
    standard_hours_per_day: int = Field(default=_env_int("STANDARD_HOURS_PER_DAY", 8))
    work_start_hour: int = Field(default=_env_int("WORK_START_HOUR", 9))
    late_grace_hours: int = Field(default=_env_int("LATE_GRACE_HOURS", 1))

    # Half a day's pay for every complete group of late days
    late_days_per_penalty: int = Field(default=_env_int("LATE_DAYS_PER_PENALTY", 3))
    late_penalty_day_fraction: Decimal = Field(
        default=Decimal(os.getenv("LATE_PENALTY_DAY_FRACTION", "0.5"))
    )
    default_overtime_multiplier: Decimal = Field(
        default=Decimal(os.getenv("DEFAULT_OVERTIME_MULTIPLIER", "1.5"))
    )

    # Attendance thresholds (hours) for half-day / absent classification
    half_day_min_hours: Decimal = Decimal("4")
    full_day_min_hours: Decimal = Decimal("6")

    default_leave_allotments: Dict[str, int] = Field(
        default_factory=lambda: {
            "annual": _env_int("LEAVE_ANNUAL_DAYS", 20),
            "sick": _env_int("LEAVE_SICK_DAYS", 10),
            "casual": _env_int("LEAVE_CASUAL_DAYS", 5),
            "unpaid": 0,
            "maternity": 0,
            "paternity": 0,
            "other": 0,
        }
    )


class Config(BaseModel):
    app_name: str = "HR Payroll Engine"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./payroll.db")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    payroll: PayrollSettings = PayrollSettings()


settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment != "development" and settings.database_url.startswith("sqlite:///./"):
    _logger.warning("Using a local SQLite file outside development; set DATABASE_URL.")

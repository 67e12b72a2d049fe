# src/ostrich/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # persistence
    DB_URI: str = Field(default="sqlite:///ostrich.db")

    # -----------------------------
    # Zillow (RapidAPI) integration
    # -----------------------------
    ZILLOW_API_KEY: str | None = Field(default=None)
    ZILLOW_API_HOST: str = Field(default="zillow-com1.p.rapidapi.com")
    ZILLOW_TIMEOUT_S: float = Field(default=20.0)
    ZILLOW_HOME_TYPE: str = Field(default="Houses")

    # upstream allows ~2 requests per second
    DETAIL_DELAY_MS: int = Field(default=700)
    DAYS_ON_MARKET: int = Field(default=1)
    MAX_CONCURRENT_SEARCHES: int = Field(default=4)

    # -----------------------------
    # Email (SendGrid)
    # -----------------------------
    SENDGRID_API_KEY: str | None = Field(default=None)
    SENDGRID_BASE_URL: str = Field(default="https://api.sendgrid.com/v3")
    EMAIL_FROM: str = Field(default="listings@ostrich.app")

    PLUGIN_URL: str = Field(
        default="https://chrome.google.com/webstore/detail/ostrich/aicgkflmidjkbcenllnnlbnfnmicpmgo"
    )

    # billing tier -> emailers processed per daily run
    TIER_LIMITS: dict[str, int] = Field(
        default_factory=lambda: {"Tier 0": 1, "Tier 1": 3, "Tier 2": 10}
    )

    # -----------------------------
    # Default investment assumptions (percent / flat monthly $)
    # -----------------------------
    DEFAULT_INSURANCE: float = Field(default=60.0)
    DEFAULT_VACANCY: float = Field(default=5.0)
    DEFAULT_PROPERTY_MANAGEMENT: float = Field(default=4.0)
    DEFAULT_CAPEX: float = Field(default=5.0)
    DEFAULT_REPAIRS: float = Field(default=5.0)
    DEFAULT_UTILITIES: float = Field(default=0.0)
    DEFAULT_DOWN_PAYMENT: float = Field(default=25.0)
    DEFAULT_CLOSING_COST: float = Field(default=4.0)
    DEFAULT_LOAN_INTEREST: float = Field(default=4.0)
    DEFAULT_LOAN_MONTHS: float = Field(default=240.0)
    DEFAULT_ADDITIONAL_MONTHLY_EXPENSES: float = Field(default=0.0)

    model_config = SettingsConfigDict(
        env_prefix="OSTRICH_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "DEFAULT_VACANCY",
        "DEFAULT_PROPERTY_MANAGEMENT",
        "DEFAULT_CAPEX",
        "DEFAULT_REPAIRS",
        "DEFAULT_DOWN_PAYMENT",
        "DEFAULT_CLOSING_COST",
        "DEFAULT_LOAN_INTEREST",
        mode="before",
    )
    @classmethod
    def _to_percent(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("rate must be numeric or percent-like") from err
        if not (0.0 <= f <= 100.0):
            raise ValueError("rate must be a percentage between 0 and 100")
        return f

    @field_validator("DETAIL_DELAY_MS", "MAX_CONCURRENT_SEARCHES", mode="before")
    @classmethod
    def _non_negative_int(cls, v: Any) -> Any:
        i = int(v)
        if i < 0:
            raise ValueError("must be >= 0")
        return i

    def default_assumptions(self) -> dict[str, float]:
        return {
            "insurance": self.DEFAULT_INSURANCE,
            "vacancy": self.DEFAULT_VACANCY,
            "property_management": self.DEFAULT_PROPERTY_MANAGEMENT,
            "capex": self.DEFAULT_CAPEX,
            "repairs": self.DEFAULT_REPAIRS,
            "utilities": self.DEFAULT_UTILITIES,
            "down_payment": self.DEFAULT_DOWN_PAYMENT,
            "closing_cost": self.DEFAULT_CLOSING_COST,
            "loan_interest": self.DEFAULT_LOAN_INTEREST,
            "loan_months": self.DEFAULT_LOAN_MONTHS,
            "additional_monthly_expenses": self.DEFAULT_ADDITIONAL_MONTHLY_EXPENSES,
        }


config = AppConfig()

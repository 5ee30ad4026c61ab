import yaml
import os
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class DatabaseConfig(BaseModel):
    url: str


class ScoreWeights(BaseModel):
    """Weights for each component of the contractor match score."""
    rating: float = 0.4
    distance: float = 0.2
    acceptance: float = 0.2
    completion: float = 0.2


class MatchingConfig(BaseModel):
    """
    Configuration for the MatchEngine.

    Scores are built from pre-normalized components in [0, 1]:
    rating/5, distance proximity, acceptance rate, completion rate.
    """
    candidates_to_offer: int = Field(default=3, ge=1)
    max_distance_km: float = Field(default=50.0, gt=0)  # Proximity reaches 0 at this distance
    default_rating: float = Field(default=2.5, ge=0, le=5)  # Used only when rating is unset
    weights: ScoreWeights = Field(default_factory=ScoreWeights)


class DispatchConfig(BaseModel):
    offer_ttl_minutes: int = Field(default=15, ge=1)
    recompute_metrics_on_claim: bool = True


class SettlementConfig(BaseModel):
    """
    Configuration for the weekly payout batch.

    Fees are fractions of the job's total price (0.15 == 15%).
    """
    schedule: str = "0 9 * * fri"  # Every Friday at 09:00
    timezone: str = "UTC"
    period_days: int = Field(default=7, ge=1)

    platform_fee_pct: float = Field(default=0.15, ge=0, lt=1)
    insurance_fee_pct: float = Field(default=0.02, ge=0, lt=1)
    min_payout_amount: float = Field(default=50.0, ge=0)
    currency: str = "usd"

    # Contractor groups are disjoint, so they may settle in parallel
    max_workers: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def _check_fees(self):
        if self.platform_fee_pct + self.insurance_fee_pct >= 1:
            raise ValueError("platform_fee_pct + insurance_fee_pct must be below 1")
        return self


class TransferGatewayConfig(BaseModel):
    url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: int = 30
    max_attempts: int = Field(default=3, ge=1)


class NotificationConfig(BaseModel):
    """
    Configuration for "job offered" notifications.

    Dispatch is fire-and-forget: failures are logged and never affect
    offer creation.
    """
    enabled: bool = False
    use_async_queue: bool = True
    redis_url: Optional[str] = None
    queue_name: str = "offers"
    webhook_url: Optional[str] = None


class WebConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    run_scheduler: bool = False  # Start the payout scheduler inside the web process


class AppConfig(BaseModel):
    database: DatabaseConfig
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    settlement: SettlementConfig = Field(default_factory=SettlementConfig)
    transfer_gateway: TransferGatewayConfig = Field(default_factory=TransferGatewayConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    web: WebConfig = Field(default_factory=WebConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from root), try the project root
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        data.setdefault('database', {})
        data['database']['url'] = env_db_url

    # Allow env var override for Redis URL
    env_redis_url = os.environ.get("REDIS_URL")
    if env_redis_url:
        if not data.get('notifications'):
            data['notifications'] = {}
        data['notifications']['redis_url'] = env_redis_url

    # Allow env var override for the transfer gateway
    env_gateway_url = os.environ.get("TRANSFER_GATEWAY_URL")
    env_gateway_key = os.environ.get("TRANSFER_GATEWAY_API_KEY")
    if env_gateway_url or env_gateway_key:
        if not data.get('transfer_gateway'):
            data['transfer_gateway'] = {}
        if env_gateway_url:
            data['transfer_gateway']['url'] = env_gateway_url
        if env_gateway_key:
            data['transfer_gateway']['api_key'] = env_gateway_key

    return AppConfig(**data)

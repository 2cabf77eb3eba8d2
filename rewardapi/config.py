from functools import lru_cache
from typing import Optional
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EconomySettings(BaseModel):
    """리워드 정책 설정 - 프로세스당 한 번 결정되는 불변 값"""

    model_config = ConfigDict(frozen=True)

    # 메시지 보상
    points_per_message: int = Field(10, ge=0)
    xp_per_message: int = Field(5, ge=0)
    messages_for_xp: int = Field(1, ge=1)
    min_message_length: int = Field(3, ge=0)
    message_cooldown_seconds: int = Field(5, ge=0)

    # 휠
    daily_wheel_spins: int = Field(3, ge=0)
    wheel_reset_time: str = "00:00"

    # 프로모코드 시도 제한
    promocode_attempts_per_window: int = Field(5, ge=1)
    promocode_attempt_window_seconds: int = Field(60, ge=1)

    # 공통
    timezone: str = "Europe/Istanbul"
    transaction_timeout_ms: int = Field(5000, ge=0)
    side_effect_timeout_seconds: float = Field(2.0, gt=0)
    leaderboard_invalidate_interval_seconds: int = Field(300, ge=0)
    notify_level_up: bool = True


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="rewardapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Reward Economy API"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = ""

    # Overrides the POSTGRES_* URL when set (e.g. sqlite for local runs)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security
    SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    INTERNAL_AUTH_HEADER: str = "X-Internal-Token"
    INTERNAL_AUTH_TOKEN: str = ""

    # Redis (cooldown gate / cache)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    REDIS_SOCKET_TIMEOUT: float = 0.5

    # AWS
    AWS_REGION: str = "eu-central-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    SQS_ENDPOINT_URL: Optional[str] = None
    SQS_NOTIFICATION_QUEUE_URL: Optional[str] = None

    # Business Rules
    POINTS_PER_MESSAGE: int = 10
    XP_PER_MESSAGE: int = 5
    MESSAGES_FOR_XP: int = 1
    MIN_MESSAGE_LENGTH: int = 3
    MESSAGE_COOLDOWN_SECONDS: int = 5
    DAILY_WHEEL_SPINS: int = 3
    WHEEL_RESET_TIME: str = "00:00"
    PROMOCODE_ATTEMPTS_PER_WINDOW: int = 5
    PROMOCODE_ATTEMPT_WINDOW_SECONDS: int = 60
    TRANSACTION_TIMEOUT_MS: int = 5000
    SIDE_EFFECT_TIMEOUT_SECONDS: float = 2.0
    LEADERBOARD_INVALIDATE_INTERVAL_SECONDS: int = 300
    NOTIFY_LEVEL_UP: bool = True

    # Timezone
    TIMEZONE: str = "Europe/Istanbul"

    @property
    def economy(self) -> EconomySettings:
        return EconomySettings(
            points_per_message=self.POINTS_PER_MESSAGE,
            xp_per_message=self.XP_PER_MESSAGE,
            messages_for_xp=self.MESSAGES_FOR_XP,
            min_message_length=self.MIN_MESSAGE_LENGTH,
            message_cooldown_seconds=self.MESSAGE_COOLDOWN_SECONDS,
            daily_wheel_spins=self.DAILY_WHEEL_SPINS,
            wheel_reset_time=self.WHEEL_RESET_TIME,
            promocode_attempts_per_window=self.PROMOCODE_ATTEMPTS_PER_WINDOW,
            promocode_attempt_window_seconds=self.PROMOCODE_ATTEMPT_WINDOW_SECONDS,
            timezone=self.TIMEZONE,
            transaction_timeout_ms=self.TRANSACTION_TIMEOUT_MS,
            side_effect_timeout_seconds=self.SIDE_EFFECT_TIMEOUT_SECONDS,
            leaderboard_invalidate_interval_seconds=self.LEADERBOARD_INVALIDATE_INTERVAL_SECONDS,
            notify_level_up=self.NOTIFY_LEVEL_UP,
        )


settings = Settings()


@lru_cache
def get_economy_settings() -> EconomySettings:
    """프로세스 전역 리워드 정책 설정 (최초 1회만 계산)"""
    return settings.economy

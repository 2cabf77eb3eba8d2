from dependency_injector import containers, providers

from rewardapi.config import Settings, get_economy_settings
from rewardapi.database.connection import SessionLocal
from rewardapi.providers.queue.sqs import SQSClient
from rewardapi.services.activity_log_service import ActivityLogService
from rewardapi.services.cooldown_gate import RedisAttemptThrottle, RedisCooldownGate
from rewardapi.services.event_dispatcher import EventDispatcher
from rewardapi.services.notification_sink import QueueNotificationSink
from rewardapi.services.redis_service import RedisService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)
    economy = providers.Singleton(get_economy_settings)


class ResourceModule(containers.DeclarativeContainer):
    """Process-wide resources shared across requests."""

    config = providers.DependenciesContainer()

    session_factory = providers.Object(SessionLocal)
    redis_service = providers.Singleton(RedisService, settings=config.config)
    sqs_client = providers.Singleton(SQSClient, settings=config.config)


class ServiceModule(containers.DeclarativeContainer):
    """Adapters and post-commit dispatch.

    요청 범위 세션을 쓰는 정책 서비스는 rewardapi.deps 에서 생성합니다.
    """

    config = providers.DependenciesContainer()
    resources = providers.DependenciesContainer()

    cooldown_gate = providers.Singleton(RedisCooldownGate, redis_service=resources.redis_service)
    attempt_throttle = providers.Singleton(RedisAttemptThrottle, redis_service=resources.redis_service)
    notification_sink = providers.Singleton(
        QueueNotificationSink,
        redis_service=resources.redis_service,
        sqs_client=resources.sqs_client,
        queue_url=config.config.provided.SQS_NOTIFICATION_QUEUE_URL,
    )
    activity_log_service = providers.Singleton(
        ActivityLogService, session_factory=resources.session_factory
    )
    event_dispatcher = providers.Singleton(
        EventDispatcher,
        sink=notification_sink,
        economy=config.economy,
        activity_log=activity_log_service,
    )


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "rewardapi.deps",
            "rewardapi.routers.point_router",
            "rewardapi.routers.wheel_router",
            "rewardapi.routers.shop_router",
            "rewardapi.routers.promocode_router",
            "rewardapi.routers.telegram_router",
        ],
    )

    config = providers.Container(ConfigModule)
    resources = providers.Container(ResourceModule, config=config)
    services = providers.Container(
        ServiceModule, config=config, resources=resources
    )

from dependency_injector import containers, providers

from trashdrop.config import Settings
from trashdrop.core.tiers import TierTable
from trashdrop.providers.connectivity import ConnectivityMonitor
from trashdrop.providers.local_store.sqlite import SqliteLocalStore
from trashdrop.providers.location_gateway.http_gateway import HttpLocationGateway
from trashdrop.services.offline_reconciler import OfflineReconciler


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class RewardsModule(containers.DeclarativeContainer):
    """Reward tier table, validated once when first provided."""

    config = providers.DependenciesContainer()

    tier_table = providers.Singleton(TierTable, tiers=config.config.provided.REWARD_TIERS)


class OfflineModule(containers.DeclarativeContainer):
    """Client-side offline sync: local store, reachability and the HTTP gateway."""

    config = providers.DependenciesContainer()

    # Supabase access token of the signed-in user, overridden by the caller
    access_token = providers.Object("")

    local_store = providers.Singleton(
        SqliteLocalStore, path=config.config.provided.LOCAL_STORE_PATH
    )
    connectivity = providers.Singleton(ConnectivityMonitor, online=True)
    location_gateway = providers.Singleton(
        HttpLocationGateway,
        base_url=config.config.provided.API_BASE_URL,
        access_token=access_token,
        timeout=config.config.provided.SYNC_REQUEST_TIMEOUT_SECONDS,
        api_prefix=config.config.provided.API_V1_STR,
    )
    reconciler = providers.Factory(
        OfflineReconciler,
        gateway=location_gateway,
        local_store=local_store,
        connectivity=connectivity,
        max_retries=config.config.provided.SYNC_MAX_RETRIES,
        backoff_seconds=config.config.provided.SYNC_BACKOFF_SECONDS,
    )


class Container(containers.DeclarativeContainer):
    """Application container."""

    config = providers.Container(ConfigModule)
    rewards = providers.Container(RewardsModule, config=config)
    offline = providers.Container(OfflineModule, config=config)

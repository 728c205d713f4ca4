import logging
from dataclasses import dataclass, field

from fastapi import Request

from app.core.auth_policy import AdminPolicy
from app.core.catalog_store import CatalogRepository
from app.core.config import Settings
from app.core.download_gate import GateRegistry
from app.core.settings_store import SettingsStore

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Per-application services, created in the lifespan and closed on shutdown."""

    catalog: CatalogRepository
    site: SettingsStore
    policy: AdminPolicy
    gates: GateRegistry
    config: Settings = field(repr=False, default=None)

    @classmethod
    def from_settings(cls, config: Settings) -> "AppState":
        return cls(
            catalog=CatalogRepository(),
            site=SettingsStore(),
            policy=AdminPolicy(config.ADMIN_PASSWORD, config.SECRET_KEY, config.ADMIN_SESSION_HOURS),
            gates=GateRegistry(delay=config.DOWNLOAD_DELAY_SEC, ttl_sec=config.DOWNLOAD_GATE_TTL_SEC),
            config=config,
        )

    async def close(self) -> None:
        await self.gates.close_all()


def get_state(request: Request) -> AppState:
    return request.app.state.portal

from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


class ServiceStatus(str, Enum):
    READY = "ready"
    INITIALIZING = "initializing"
    DEGRADED = "degraded"
    ERROR = "error"
    UNAVAILABLE = "unavailable"


# Upstream services the backend depends on
TRANSCRIBER = "transcriber"
LLM = "llm"

_FAILED = (ServiceStatus.ERROR, ServiceStatus.UNAVAILABLE, ServiceStatus.DEGRADED)


@dataclass
class ComponentHealth:
    status: ServiceStatus = ServiceStatus.INITIALIZING
    error: Optional[str] = None
    changed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "error": self.error,
            "changed_at": self.changed_at.isoformat() if self.changed_at else None,
        }


class SystemHealthService:
    """
    Process-wide record of what the last call to each upstream service
    (speech-to-text, LLM provider) reported. Nothing is polled; the ASR and
    LLM clients report after every request.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(SystemHealthService, cls).__new__(cls)
            cls._instance.reset()
        return cls._instance

    def reset(self):
        self.components = {TRANSCRIBER: ComponentHealth(), LLM: ComponentHealth()}
        self.last_check = None

    @property
    def transcriber_status(self) -> ServiceStatus:
        return self.components[TRANSCRIBER].status

    @property
    def llm_status(self) -> ServiceStatus:
        return self.components[LLM].status

    def report(self, component: str, status: ServiceStatus, error: Optional[str] = None):
        health = self.components[component]
        now = datetime.utcnow()
        self.last_check = now

        if health.status == status and health.error == error:
            return
        if health.status != status:
            logger.info(f"System Health: {component} changed from {health.status.value} to {status.value} (Error: {error})")
            health.changed_at = now
        health.status = status
        health.error = error

    def set_transcriber_status(self, status: ServiceStatus, error: Optional[str] = None):
        self.report(TRANSCRIBER, status, error)

    def set_llm_status(self, status: ServiceStatus, error: Optional[str] = None):
        self.report(LLM, status, error)

    def get_status(self) -> Dict[str, Any]:
        statuses = [health.status for health in self.components.values()]

        # A failed upstream only degrades the app; uploads and editing still work
        if any(status in _FAILED for status in statuses):
            overall = ServiceStatus.DEGRADED
        elif ServiceStatus.INITIALIZING in statuses:
            overall = ServiceStatus.INITIALIZING
        else:
            overall = ServiceStatus.READY

        return {
            "overall_status": overall,
            "components": {name: health.to_dict() for name, health in self.components.items()},
            "last_check": self.last_check.isoformat() if self.last_check else None,
        }

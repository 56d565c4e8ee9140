from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigDocument(BaseModel):
    """Structured view of the daemon configuration file"""
    basic: Dict[str, str] = Field(default_factory=dict)
    protected_paths: List[str] = Field(default_factory=list)
    command_rules: List[str] = Field(default_factory=list)


class ConfigPatch(BaseModel):
    """
    Partial update sent by POST /config. Sections replace whole.

    Fields stay loosely typed: a wrongly shaped part is skipped with a
    warning by the config service while the rest of the patch applies.
    """
    basic: Optional[Any] = None
    protected_paths: Optional[Any] = None
    command_rules: Optional[Any] = None


class ConfigUpdateResponse(BaseModel):
    message: str
    warnings: List[str] = Field(default_factory=list)


class WebSettings(BaseModel):
    """Bind address of the control panel itself"""
    model_config = ConfigDict(frozen=True)

    ip: str
    port: int

    @property
    def address(self) -> str:
        return f"{self.ip}:{self.port}"


class PanelPaths(BaseModel):
    """Filesystem locations and commands the routers operate on"""
    config_path: Path
    log_path: Path
    language_path: Path
    reload_command: List[str]
    restart_command: List[str]
    poll_interval: float = 0.5

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatbar.constants import DEFAULT_SIDEBAR_WIDTH, MAX_SIDEBAR_WIDTH, MIN_SIDEBAR_WIDTH
from chatbar.tui.types import SortMode, VisibilityPolicy


class SidebarConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    width: int = Field(default=DEFAULT_SIDEBAR_WIDTH, ge=MIN_SIDEBAR_WIDTH, le=MAX_SIDEBAR_WIDTH)
    # Open the sidebar automatically when a new chat session appears
    auto_open: bool = False


class TreeConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    sort_mode: SortMode = SortMode.ACTIVITY
    hide_mode_topic: VisibilityPolicy = VisibilityPolicy.HEADER_LINE
    reveal_keys: bool = False
    own_nick_face: Optional[str] = None
    nick_colors: bool = False

    @field_validator("own_nick_face")
    @classmethod
    def validate_own_nick_face(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if " " in v:
            raise ValueError(f"Face names cannot contain spaces: {v!r}")
        return v


class UiConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    # The main surface shows a header line with the channel topic and modes
    header_line: bool = True


class ChatbarConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    sidebar: SidebarConfig = SidebarConfig()
    tree: TreeConfig = TreeConfig()
    ui: UiConfig = UiConfig()

"""
Data models for the registration server
"""
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and in the store"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Participant(CamelModel):
    """Team lead details (index 0); extra keys are kept as sent"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="allow",
    )

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    college: Optional[str] = None
    department_year: Optional[str] = None
    linkedin: Optional[str] = None      # professional network profile
    portfolio: Optional[str] = None


class ReceivedFile(BaseModel):
    """Upload that passed media-type and size checks, not yet persisted"""
    field_name: str
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class InlineAttachment(CamelModel):
    """Payment proof stored inside the registration document"""
    data: bytes
    content_type: str
    filename: str
    size: int


# Disk policy stores the generated filename, inline policy stores the bytes
PaymentScreenshot = Union[str, InlineAttachment]


class ValidatedSubmission(BaseModel):
    """Output of the validator, ready to become a Registration"""
    team_name: str
    team_size: int = Field(ge=1, le=3)
    participants: List[Dict[str, Any]]   # stored as sent, lead normalized
    portfolio_url: str
    payment_file: Any = None


class Registration(CamelModel):
    """Stored registration record (aggregate root)"""
    id: str
    team_name: str
    team_size: int = Field(ge=1, le=3)
    participants: List[Dict[str, Any]]
    portfolio_url: str
    payment_screenshot: PaymentScreenshot
    entry_fee: int
    registration_date: str
    status: str = "pending"
    email_sent: bool = False            # reserved for a future notification integration
    updated_at: Optional[str] = None


# ==================== SETTINGS ====================

class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000


class StorageSettings(BaseModel):
    backend: Literal["mongodb", "memory"] = "mongodb"
    mongo_uri: str = "mongodb://localhost:27017/frontend-arena"
    database: Optional[str] = None      # None = database named in mongo_uri
    collection: str = "event"
    server_selection_timeout_ms: int = 10000
    on_connect_failure: Literal["exit", "memory"] = "exit"


class UploadSettings(BaseModel):
    mode: Literal["disk", "inline"] = "disk"
    directory: str = "uploads"
    max_bytes: int = 5 * 1024 * 1024
    field_name: str = "paymentScreenshot"


class RegistrationSettings(BaseModel):
    id_policy: Literal["sequential", "random"] = "sequential"
    require_participant_links: bool = False


class Settings(BaseModel):
    """Top-level application configuration"""
    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]
    server: ServerSettings = ServerSettings()
    storage: StorageSettings = StorageSettings()
    uploads: UploadSettings = UploadSettings()
    registration: RegistrationSettings = RegistrationSettings()

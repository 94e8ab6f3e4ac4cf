"""Shared Pydantic models for the Kubernetes request backend.

The models provide type safety and validation for:
- Call descriptors built from the public ``http(options)`` contract
- Credentials and the provider specs used to refresh them
- Plain API responses and upgraded session results
- Multiplexed channel frames
"""

from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


# Call Models
class CallDescriptor(BaseModel):
    """One logical call against the API server.

    Immutable once built; the same descriptor is re-sent on a credential
    retry and re-encoded when the server asks for an upgrade.

    :param method: HTTP method
    :type method: str
    :param path: Version-qualified API path, e.g. ``/api/v1/namespaces``
    :type path: str
    :param qs: Query parameters; list values are sent as repeated keys
    :type qs: Dict[str, Any]
    :param headers: Extra request headers
    :type headers: Dict[str, str]
    :param body: Request body, JSON-encoded when ``json`` is set
    :type body: Any
    :param stream: Return a live byte stream instead of a buffered body
    :type stream: bool
    :param no_auth: Never attach the connection credential
    :type no_auth: bool
    :param json: Encode the body and decode the response as JSON
    :type json: bool
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    method: str = "GET"
    path: str = Field(validation_alias=AliasChoices("pathname", "path"))
    qs: Dict[str, Any] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None
    stream: bool = False
    no_auth: bool = Field(False, validation_alias=AliasChoices("noAuth", "no_auth"))
    json_body: bool = Field(True, validation_alias=AliasChoices("json", "json_body"))

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "CallDescriptor":
        """Build a descriptor from the public option names.

        Accepts ``pathname`` or ``path``, ``parameters`` or ``qs`` and
        ``noAuth`` or ``no_auth``. A ``json`` key that is present but
        falsy turns JSON handling off.

        :param options: Call options as passed to ``Request.http``
        :type options: Mapping[str, Any]
        :return: Frozen call descriptor
        :rtype: CallDescriptor
        """
        data = dict(options)
        data["qs"] = dict(data.pop("parameters", None) or data.get("qs") or {})
        data["headers"] = dict(data.get("headers") or {})
        data["method"] = str(data.get("method") or "GET").upper()
        if "json" in data:
            data["json"] = bool(data["json"])
        return cls.model_validate(data)


# Auth Models
class ProviderSpec(BaseModel):
    """How to obtain a fresh credential.

    :param type: Provider kind, resolved against ``ProviderKind``
    :type type: str
    :param config: Opaque provider configuration
    :type config: Dict[str, Any]
    """

    model_config = ConfigDict(frozen=True)

    type: str
    config: Dict[str, Any] = Field(default_factory=dict)


class Credential(BaseModel):
    """The credential attached to outbound calls.

    Credentials are replaced, never mutated: a refresh builds a new
    instance carrying the same provider spec.

    :param bearer: Bearer token
    :type bearer: Optional[str]
    :param username: Basic auth user name
    :type username: Optional[str]
    :param password: Basic auth password
    :type password: Optional[str]
    :param provider: Refresh recipe; ``None`` means not refreshable
    :type provider: Optional[ProviderSpec]
    """

    model_config = ConfigDict(frozen=True)

    bearer: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    provider: Optional[ProviderSpec] = None

    @property
    def refreshable(self) -> bool:
        """Whether a provider is configured for this credential."""
        return self.provider is not None

    @property
    def has_secret(self) -> bool:
        """Whether anything can be sent as an Authorization header."""
        return bool(self.bearer) or self.username is not None

    def with_bearer(self, token: str) -> "Credential":
        """Return a replacement credential holding ``token``."""
        return self.model_copy(update={"bearer": token})


# Response Models
class ApiResponse(BaseModel):
    """Normalized result of a plain call.

    :param status_code: HTTP status code
    :type status_code: int
    :param body: Decoded body (JSON document or text)
    :type body: Any
    :param headers: Response headers
    :type headers: Dict[str, str]
    """

    status_code: int
    body: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)


# Channel Models
class Channel(IntEnum):
    """Logical streams multiplexed over an upgraded connection."""

    STDIN = 0
    STDOUT = 1
    STDERR = 2
    ERROR = 3
    RESIZE = 4

    @property
    def label(self) -> str:
        return self.name.lower()


CONTROL_CHANNELS = frozenset({Channel.ERROR, Channel.RESIZE})


class Frame(BaseModel):
    """A decoded channel frame.

    :param channel: Channel the frame belongs to
    :type channel: Channel
    :param message: Decoded text payload
    :type message: str
    """

    model_config = ConfigDict(frozen=True)

    channel: Channel
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"channel": self.channel.label, "message": self.message}


class SessionResult(BaseModel):
    """Terminal value of a streaming session that closed.

    :param messages: Every decoded frame, in arrival order
    :type messages: List[Frame]
    :param body: Concatenated text of the non-control channels
    :type body: str
    :param code: Close code sent by the server
    :type code: Optional[int]
    :param reason: Close reason sent by the server
    :type reason: str
    :param status: JSON document carried on the error channel, if any
    :type status: Optional[Dict[str, Any]]
    """

    messages: List[Frame] = Field(default_factory=list)
    body: str = ""
    code: Optional[int] = None
    reason: str = ""
    status: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _fill_body(self) -> "SessionResult":
        if not self.body and self.messages:
            self.body = "".join(
                f.message for f in self.messages if f.channel not in CONTROL_CHANNELS
            )
        return self

    def channel_text(self, channel: Channel) -> str:
        """Return the concatenated text received on one channel."""
        return "".join(f.message for f in self.messages if f.channel == channel)

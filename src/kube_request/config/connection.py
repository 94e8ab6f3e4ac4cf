"""Connection configuration and its explicit validation step.

A ``ConnectionConfig`` describes one API server: where it lives, the TLS
material used to reach it and the credential attached to calls. It is
usually produced by a kubeconfig loader living outside this package.

``validate_connection()`` reports problems as typed ``ConfigIssue`` values
instead of emitting warnings as a side effect, so callers decide how loud
to be.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..models import Credential


class IssueSeverity(str, Enum):
    """Severity of a configuration issue."""

    WARNING = "warning"
    ERROR = "error"


class ConfigIssue(BaseModel):
    """A problem found while validating a connection configuration.

    :param severity: ``warning`` issues are logged, ``error`` issues abort
    :type severity: IssueSeverity
    :param setting: Name of the offending setting
    :type setting: str
    :param message: Human-readable description
    :type message: str
    """

    model_config = ConfigDict(frozen=True)

    severity: IssueSeverity
    setting: str
    message: str

    @property
    def is_error(self) -> bool:
        return self.severity is IssueSeverity.ERROR


class ConnectionConfig(BaseModel):
    """Connection parameters for one API server.

    ``ca``, ``cert`` and ``key`` accept either PEM text or a path to a PEM
    file.

    :param url: API server base URL
    :type url: str
    :param ca: Certificate authority bundle
    :type ca: Optional[str]
    :param cert: Client certificate
    :type cert: Optional[str]
    :param key: Client private key
    :type key: Optional[str]
    :param insecure_skip_tls_verify: Skip server certificate verification
    :type insecure_skip_tls_verify: bool
    :param timeout: Request timeout in seconds; falls back to settings
    :type timeout: Optional[float]
    :param auth: Initial credential
    :type auth: Optional[Credential]
    :param headers: Headers merged into every call
    :type headers: Dict[str, str]
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str = ""
    ca: Optional[str] = None
    cert: Optional[str] = None
    key: Optional[str] = None
    insecure_skip_tls_verify: bool = Field(
        False,
        validation_alias=AliasChoices(
            "insecure_skip_tls_verify", "insecureSkipTlsVerify"
        ),
    )
    timeout: Optional[float] = None
    auth: Optional[Credential] = None
    headers: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "ConnectionConfig":
        """Build a configuration from loosely shaped options.

        Accepts an ``auth`` mapping either holding the credential fields
        directly (``{"bearer": ...}``) or split into the initial request
        credential and a refresh provider
        (``{"request": {"bearer": ...}, "provider": {"type": ..., "config": ...}}``).

        :param options: Connection options
        :type options: Dict[str, Any]
        :return: Parsed configuration
        :rtype: ConnectionConfig
        """
        data = dict(options)
        auth = data.get("auth")
        if isinstance(auth, dict) and "request" in auth:
            merged = dict(auth.get("request") or {})
            if auth.get("provider"):
                merged["provider"] = auth["provider"]
            data["auth"] = merged
        return cls.model_validate(data)

    @property
    def scheme(self) -> str:
        return (urlparse(self.url).scheme or "").lower()

    def validate_connection(self) -> List[ConfigIssue]:
        """Check the configuration and return every issue found.

        :return: Issues ordered errors-first
        :rtype: List[ConfigIssue]
        """
        issues: List[ConfigIssue] = []

        def add(severity: IssueSeverity, setting: str, message: str) -> None:
            issues.append(ConfigIssue(severity=severity, setting=setting, message=message))

        if not self.url:
            add(IssueSeverity.ERROR, "url", "No API server URL configured")
        elif self.scheme not in ("http", "https"):
            add(
                IssueSeverity.ERROR,
                "url",
                f"Unsupported URL scheme '{self.scheme}'; expected http or https",
            )

        if bool(self.cert) != bool(self.key):
            add(
                IssueSeverity.ERROR,
                "cert" if not self.cert else "key",
                "Client certificate and key must be configured together",
            )

        if self.insecure_skip_tls_verify and self.ca:
            add(
                IssueSeverity.WARNING,
                "insecure_skip_tls_verify",
                "TLS verification is disabled; the configured CA is ignored",
            )

        if self.auth is None or (not self.auth.has_secret and not self.auth.refreshable):
            if not self.cert:
                add(
                    IssueSeverity.WARNING,
                    "auth",
                    "No credential configured; calls will be sent anonymously",
                )
        elif self.auth.refreshable and not self.auth.bearer:
            add(
                IssueSeverity.WARNING,
                "auth",
                "Refreshable credential has no initial token; "
                "the first call will fail and trigger a refresh",
            )

        issues.sort(key=lambda i: 0 if i.is_error else 1)
        return issues

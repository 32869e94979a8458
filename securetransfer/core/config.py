"""
Transfer configuration module.

Provides configuration for the HTTP transport and the transfer pipelines.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple
import ssl


# XEP-0363 namespaces, in order of preference
HTTP_UPLOAD_NAMESPACE = 'urn:xmpp:http:upload:0'
LEGACY_HTTP_UPLOAD_NAMESPACE = 'urn:xmpp:http:upload'


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None

        if self.username and self.password:
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url


@dataclass
class SSLConfig:
    """SSL/TLS configuration."""
    verify: bool = True
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    All fields default to None, which leaves aiohttp's own defaults in
    place. Transfers have no timeout of their own.
    """
    total: Optional[float] = None
    connect: Optional[float] = None
    sock_read: Optional[float] = None
    sock_connect: Optional[float] = None

    @property
    def is_set(self) -> bool:
        return any(
            value is not None
            for value in (self.total, self.connect, self.sock_read, self.sock_connect)
        )

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout, or None when nothing is set."""
        if not self.is_set:
            return None
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class TransferConfig:
    """
    Complete transfer configuration.

    Centralizes the options used by the HTTP transport, the capability
    registry and the upload pipeline.
    """
    user_agent: str = 'securetransfer/1.0.0'

    # Namespaces accepted as the upload feature during discovery
    upload_namespaces: Tuple[str, ...] = (
        HTTP_UPLOAD_NAMESPACE,
        LEGACY_HTTP_UPLOAD_NAMESPACE,
    )

    # PUT responses counted as a successful transfer
    success_statuses: Tuple[int, ...] = (200, 201)

    default_content_type: str = 'application/octet-stream'

    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)

    limit_per_host: int = 10
    limit: int = 100

    @property
    def slot_namespace(self) -> str:
        """Slot request namespace for services that recorded none."""
        return self.upload_namespaces[0]

    @classmethod
    def default(cls) -> 'TransferConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'TransferConfig':
        """Create configuration with proxy."""
        return cls(
            proxy=ProxyConfig(url=proxy_url),
            **kwargs
        )

    @classmethod
    def insecure(cls, **kwargs) -> 'TransferConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }
        kwargs: Dict[str, Any] = {'headers': headers}
        timeout = self.timeout.to_aiohttp_timeout()
        if timeout is not None:
            kwargs['timeout'] = timeout
        return kwargs

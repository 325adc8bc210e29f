"""Catalog connection descriptor.

Accepts either an ADO.NET style connection string, as found in Entity
Framework ``App.config`` files:

    Server=db01;Initial Catalog=Sales;User ID=doc;Password=secret

or a SQLAlchemy URL (``mssql+pyodbc://...``). Both are validated up front:
an unparseable string or one without a database (``Initial Catalog``) is a
ConfigurationError raised before any catalog activity.
"""

from dataclasses import dataclass, field

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from eftdoc.errors import ConfigurationError

SOURCE = "connection string"

# ADO.NET keyword -> descriptor field
_KEYWORDS = {
    "data source": "server",
    "server": "server",
    "address": "server",
    "addr": "server",
    "network address": "server",
    "initial catalog": "database",
    "database": "database",
    "user id": "user",
    "uid": "user",
    "user": "user",
    "password": "password",
    "pwd": "password",
    "integrated security": "integrated_security",
    "trusted_connection": "integrated_security",
}

# ADO.NET keyword -> ODBC keyword, passed through unchanged
_ODBC_OPTIONS = {
    "encrypt": "Encrypt",
    "trustservercertificate": "TrustServerCertificate",
    "trust server certificate": "TrustServerCertificate",
    "connect timeout": "Connection Timeout",
    "connection timeout": "Connection Timeout",
    "timeout": "Connection Timeout",
    "application name": "APP",
    "app": "APP",
    "multipleactiveresultsets": "MARS_Connection",
    "multiple active result sets": "MARS_Connection",
    "applicationintent": "ApplicationIntent",
    "application intent": "ApplicationIntent",
    "attachdbfilename": "AttachDBFileName",
    "extended properties": "AttachDBFileName",
    "initial file name": "AttachDBFileName",
    "multisubnetfailover": "MultiSubnetFailover",
    "multi subnet failover": "MultiSubnetFailover",
    "workstation id": "WSID",
    "wsid": "WSID",
    "packet size": "Packet Size",
    "connect retry count": "ConnectRetryCount",
    "connectretrycount": "ConnectRetryCount",
    "connect retry interval": "ConnectRetryInterval",
    "connectretryinterval": "ConnectRetryInterval",
    "authentication": "Authentication",
    "failover partner": "Failover_Partner",
    "current language": "Language",
    "language": "Language",
    "column encryption setting": "ColumnEncryption",
    "hostnameincertificate": "HostnameInCertificate",
    "host name in certificate": "HostnameInCertificate",
    "ip address preference": "IpAddressPreference",
}

# SqlClient-only settings, accepted and dropped
_IGNORED = {
    "persist security info",
    "persistsecurityinfo",
    "pooling",
    "min pool size",
    "max pool size",
    "connection lifetime",
    "load balance timeout",
    "pool blocking period",
    "poolblockingperiod",
    "enlist",
    "transaction binding",
    "type system version",
    "replication",
    "context connection",
    "asynchronous processing",
    "async",
    "user instance",
    "command timeout",
}

_TRUE = {"true", "yes", "sspi", "1"}

# SqlClient connects unencrypted unless told otherwise; ODBC Driver 18 does not
DEFAULT_ENCRYPT = "no"


def split_pairs(text: str) -> list[tuple[str, str]]:
    """Split an ADO.NET connection string into (keyword, value) pairs.

    Values may be wrapped in single or double quotes; a doubled quote inside
    a quoted value stands for one literal quote.

    Raises:
        ConfigurationError: On a segment without ``=`` or an unterminated quote
    """
    pairs: list[tuple[str, str]] = []
    i, n = 0, len(text)

    while i < n:
        while i < n and (text[i].isspace() or text[i] == ";"):
            i += 1
        if i >= n:
            break

        eq = text.find("=", i)
        key = text[i:eq].strip() if eq >= 0 else ""
        if eq < 0 or not key or ";" in key:
            raise ConfigurationError("invalid connection string", source=SOURCE)
        i = eq + 1

        while i < n and text[i] in " \t":
            i += 1

        if i < n and text[i] in "\"'":
            quote = text[i]
            i += 1
            chars: list[str] = []
            while True:
                if i >= n:
                    raise ConfigurationError(
                        f"unterminated quoted value for '{key}'", source=SOURCE
                    )
                if text[i] == quote:
                    if i + 1 < n and text[i + 1] == quote:
                        chars.append(quote)
                        i += 2
                        continue
                    i += 1
                    break
                chars.append(text[i])
                i += 1
            value = "".join(chars)

            while i < n and text[i].isspace():
                i += 1
            if i < n and text[i] != ";":
                raise ConfigurationError(
                    f"unexpected text after quoted value for '{key}'", source=SOURCE
                )
        else:
            end = text.find(";", i)
            if end < 0:
                end = n
            value = text[i:end].strip()
            i = end

        pairs.append((key, value))

    return pairs


def _odbc_value(value: str) -> str:
    """Quote an ODBC attribute value when it contains delimiters."""
    if any(c in value for c in ";{}") or value != value.strip():
        return "{" + value.replace("}", "}}") + "}"
    return value


@dataclass
class ConnectionDescriptor:
    """Validated catalog connection settings.

    Attributes:
        database: Catalog (database) whose extended properties are read
        server: Server / data source (driver default when None)
        user: SQL login
        password: SQL login password
        integrated_security: Use Windows authentication
        options: Extra ODBC attributes carried over from the source string
        url: Original SQLAlchemy URL when one was given instead
    """

    database: str
    server: str | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    integrated_security: bool = False
    options: dict[str, str] = field(default_factory=dict)
    url: URL | None = field(default=None, repr=False)

    @classmethod
    def parse(cls, text: str | None) -> "ConnectionDescriptor":
        """Parse and validate a connection string or SQLAlchemy URL.

        Raises:
            ConfigurationError: If the string is missing, unparseable or names no database
        """
        if text is None or not text.strip():
            raise ConfigurationError("no connection string was specified", source=SOURCE)

        if "://" in text:
            return cls._from_url(text.strip())

        values: dict[str, str] = {}
        options: dict[str, str] = {}
        for key, value in split_pairs(text):
            keyword = " ".join(key.lower().split())
            if keyword in _KEYWORDS:
                values[_KEYWORDS[keyword]] = value
            elif keyword in _ODBC_OPTIONS:
                options[_ODBC_OPTIONS[keyword]] = value
            elif keyword not in _IGNORED:
                raise ConfigurationError(
                    f"invalid connection string: unsupported keyword '{key}'", source=SOURCE
                )

        database = values.get("database")
        if not database:
            raise ConfigurationError("no InitialCatalog was specified", source=SOURCE)

        return cls(
            database=database,
            server=values.get("server") or None,
            user=values.get("user") or None,
            password=values.get("password"),
            integrated_security=values.get("integrated_security", "").lower() in _TRUE,
            options=options,
        )

    @classmethod
    def _from_url(cls, text: str) -> "ConnectionDescriptor":
        try:
            url = make_url(text)
        except ArgumentError as e:
            raise ConfigurationError(f"invalid connection URL: {e}", source=SOURCE) from e

        if not url.database:
            raise ConfigurationError("no database was specified in the URL", source=SOURCE)

        return cls(
            database=url.database,
            server=url.host,
            user=url.username,
            password=url.password,
            url=url,
        )

    def odbc_connect(self, driver: str) -> str:
        """Build an ODBC connection string for ``driver``.

        ``Encrypt=no`` is added unless the source string set ``Encrypt``,
        matching the SqlClient default.
        """
        parts = [f"DRIVER={{{driver}}}"]
        if self.server:
            parts.append(f"SERVER={_odbc_value(self.server)}")
        parts.append(f"DATABASE={_odbc_value(self.database)}")
        if self.integrated_security:
            parts.append("Trusted_Connection=yes")
        else:
            if self.user:
                parts.append(f"UID={_odbc_value(self.user)}")
            if self.password is not None:
                parts.append(f"PWD={_odbc_value(self.password)}")
        for key, value in self.options.items():
            parts.append(f"{key}={_odbc_value(value)}")
        if "Encrypt" not in self.options:
            parts.append(f"Encrypt={DEFAULT_ENCRYPT}")
        return ";".join(parts)

    def to_url(self, driver: str) -> URL:
        """SQLAlchemy URL for this descriptor.

        A URL given at parse time is returned unchanged; an ADO.NET string
        becomes an ``mssql+pyodbc`` URL with a raw ``odbc_connect`` string.
        """
        if self.url is not None:
            return self.url
        return URL.create("mssql+pyodbc", query={"odbc_connect": self.odbc_connect(driver)})

    def describe(self) -> str:
        """Server/database label without credentials."""
        return f"{self.server or '(default server)'}/{self.database}"

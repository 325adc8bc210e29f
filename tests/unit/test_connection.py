"""Unit tests for connection string parsing."""

import pytest

from eftdoc.catalog import ConnectionDescriptor
from eftdoc.catalog.connection import split_pairs
from eftdoc.errors import ConfigurationError

DRIVER = "ODBC Driver 18 for SQL Server"


class TestSplitPairs:
    """Tests for split_pairs."""

    def test_simple(self) -> None:
        """Test plain keyword=value segments."""
        assert split_pairs("Server=db01;Database=Sales") == [
            ("Server", "db01"),
            ("Database", "Sales"),
        ]

    def test_whitespace_and_trailing_semicolon(self) -> None:
        """Test surrounding whitespace and empty segments are ignored."""
        assert split_pairs("  Server = db01 ; ;Database=Sales; ") == [
            ("Server", "db01"),
            ("Database", "Sales"),
        ]

    def test_quoted_value_with_semicolon(self) -> None:
        """Test quoted values may contain the separator."""
        assert split_pairs("Password='a;b';User ID=doc") == [
            ("Password", "a;b"),
            ("User ID", "doc"),
        ]

    def test_doubled_quote_escape(self) -> None:
        """Test a doubled quote inside a quoted value is one literal quote."""
        assert split_pairs('Password="say ""hi"""') == [("Password", 'say "hi"')]

    def test_value_with_equals(self) -> None:
        """Test only the first '=' separates keyword and value."""
        assert split_pairs("Password=a=b") == [("Password", "a=b")]

    @pytest.mark.parametrize("text", ["Server", "=db01", "Server=db01;Database"])
    def test_segment_without_keyword(self, text: str) -> None:
        """Test segments without keyword=value are rejected."""
        with pytest.raises(ConfigurationError, match="invalid connection string"):
            split_pairs(text)

    def test_unterminated_quote(self) -> None:
        """Test an unterminated quote is rejected."""
        with pytest.raises(ConfigurationError, match="unterminated"):
            split_pairs("Password='secret")

    def test_text_after_quote(self) -> None:
        """Test trailing text after a closing quote is rejected."""
        with pytest.raises(ConfigurationError, match="unexpected text"):
            split_pairs("Password='secret'x;Server=db01")


class TestParse:
    """Tests for ConnectionDescriptor.parse."""

    def test_sql_login(self) -> None:
        """Test a SQL login connection string."""
        descriptor = ConnectionDescriptor.parse(
            "Data Source=db01;Initial Catalog=Sales;User ID=doc;Password=pw"
        )

        assert descriptor.server == "db01"
        assert descriptor.database == "Sales"
        assert descriptor.user == "doc"
        assert descriptor.password == "pw"
        assert descriptor.integrated_security is False

    @pytest.mark.parametrize("value", ["true", "True", "SSPI", "yes"])
    def test_integrated_security(self, value: str) -> None:
        """Test the accepted spellings of integrated security."""
        descriptor = ConnectionDescriptor.parse(
            f"Server=db01;Database=Sales;Integrated Security={value}"
        )

        assert descriptor.integrated_security is True

    def test_keywords_case_and_spacing(self) -> None:
        """Test keywords match case-insensitively with collapsed spaces."""
        descriptor = ConnectionDescriptor.parse("SERVER=db01;initial   catalog=Sales")

        assert descriptor.database == "Sales"

    def test_odbc_options_carried(self) -> None:
        """Test known ADO.NET options map to ODBC attributes."""
        descriptor = ConnectionDescriptor.parse(
            "Server=db01;Database=Sales;Encrypt=True;TrustServerCertificate=True;"
            "MultipleActiveResultSets=True;Application Name=EntityFramework"
        )

        assert descriptor.options == {
            "Encrypt": "True",
            "TrustServerCertificate": "True",
            "MARS_Connection": "True",
            "APP": "EntityFramework",
        }

    def test_ignored_keywords(self) -> None:
        """Test pooling keywords are accepted and dropped."""
        descriptor = ConnectionDescriptor.parse(
            "Server=db01;Database=Sales;Persist Security Info=True;Pooling=false"
        )

        assert descriptor.options == {}

    @pytest.mark.parametrize(
        ("text", "options"),
        [
            (
                r"Data Source=(LocalDB)\MSSQLLocalDB;"
                r"AttachDbFilename=|DataDirectory|\Sales.mdf;"
                "Initial Catalog=Sales;Integrated Security=True",
                {"AttachDBFileName": r"|DataDirectory|\Sales.mdf"},
            ),
            (
                "Server=tcp:ag-listener,1433;Initial Catalog=Sales;"
                "MultiSubnetFailover=True;Workstation ID=BUILD01",
                {"MultiSubnetFailover": "True", "WSID": "BUILD01"},
            ),
            (
                "Server=db01;Initial Catalog=Sales;Packet Size=4096;"
                "Connect Retry Count=3;Connect Retry Interval=10",
                {"Packet Size": "4096", "ConnectRetryCount": "3", "ConnectRetryInterval": "10"},
            ),
            (
                "Server=sales.database.windows.net;Initial Catalog=Sales;"
                "Authentication=Active Directory Interactive;User ID=doc@contoso.com",
                {"Authentication": "Active Directory Interactive"},
            ),
        ],
    )
    def test_app_config_options(self, text: str, options: dict[str, str]) -> None:
        """Test common App.config keywords map to their ODBC attributes."""
        descriptor = ConnectionDescriptor.parse(text)

        assert descriptor.database == "Sales"
        assert descriptor.options == options

    def test_sqlclient_only_keywords_dropped(self) -> None:
        """Test settings without an ODBC counterpart are accepted and dropped."""
        descriptor = ConnectionDescriptor.parse(
            "Server=db01;Initial Catalog=Sales;Enlist=false;Connection Lifetime=30;"
            "Load Balance Timeout=30;Transaction Binding=Implicit Unbind;"
            "Type System Version=SQL Server 2012;Pool Blocking Period=Auto;"
            "Replication=false;Context Connection=false"
        )

        assert descriptor.options == {}

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_missing(self, text: str | None) -> None:
        """Test a missing connection string is a configuration error."""
        with pytest.raises(ConfigurationError, match="no connection string was specified"):
            ConnectionDescriptor.parse(text)

    @pytest.mark.parametrize(
        "text",
        ["Server=db01;User ID=doc", "Server=db01;Initial Catalog="],
    )
    def test_missing_initial_catalog(self, text: str) -> None:
        """Test a connection string without a database is rejected."""
        with pytest.raises(ConfigurationError, match="no InitialCatalog was specified"):
            ConnectionDescriptor.parse(text)

    def test_unsupported_keyword(self) -> None:
        """Test unknown keywords are reported by name."""
        with pytest.raises(ConfigurationError, match="unsupported keyword 'Flavour'"):
            ConnectionDescriptor.parse("Server=db01;Database=Sales;Flavour=vanilla")

    def test_error_names_source(self) -> None:
        """Test errors are prefixed with what was being parsed."""
        with pytest.raises(ConfigurationError) as exc_info:
            ConnectionDescriptor.parse("Server=db01")

        assert str(exc_info.value).startswith("connection string: ")


class TestParseUrl:
    """Tests for SQLAlchemy URL input."""

    def test_url(self) -> None:
        """Test a SQLAlchemy URL is accepted and kept."""
        descriptor = ConnectionDescriptor.parse(
            "mssql+pyodbc://doc:pw@db01/Sales?driver=ODBC+Driver+18+for+SQL+Server"
        )

        assert descriptor.database == "Sales"
        assert descriptor.server == "db01"
        assert descriptor.user == "doc"
        assert descriptor.url is not None
        assert descriptor.to_url(DRIVER) is descriptor.url

    def test_url_without_database(self) -> None:
        """Test a URL without a database is rejected."""
        with pytest.raises(ConfigurationError, match="no database"):
            ConnectionDescriptor.parse("mssql+pyodbc://doc:pw@db01")

    def test_invalid_url(self) -> None:
        """Test an unparseable URL is a configuration error."""
        with pytest.raises(ConfigurationError, match="invalid connection URL"):
            ConnectionDescriptor.parse("://db01/Sales")


class TestOdbcConnect:
    """Tests for building ODBC connection strings."""

    def test_sql_login(self) -> None:
        """Test a SQL login becomes UID/PWD attributes."""
        descriptor = ConnectionDescriptor(
            database="Sales", server="db01", user="doc", password="pw"
        )

        assert descriptor.odbc_connect(DRIVER) == (
            "DRIVER={ODBC Driver 18 for SQL Server};SERVER=db01;DATABASE=Sales;UID=doc;PWD=pw;"
            "Encrypt=no"
        )

    def test_integrated_security_drops_credentials(self) -> None:
        """Test Windows authentication ignores any login."""
        descriptor = ConnectionDescriptor(
            database="Sales", user="doc", password="pw", integrated_security=True
        )

        assert descriptor.odbc_connect(DRIVER) == (
            "DRIVER={ODBC Driver 18 for SQL Server};DATABASE=Sales;Trusted_Connection=yes;"
            "Encrypt=no"
        )

    def test_values_with_delimiters_braced(self) -> None:
        """Test values holding ';' or '}' are wrapped in braces."""
        descriptor = ConnectionDescriptor(database="Sales", user="doc", password="a;b}c")

        assert ";PWD={a;b}}c};" in descriptor.odbc_connect(DRIVER)

    def test_options_appended(self) -> None:
        """Test carried options follow the core attributes."""
        descriptor = ConnectionDescriptor(database="Sales", options={"Encrypt": "yes"})

        assert descriptor.odbc_connect(DRIVER).endswith(";Encrypt=yes")

    def test_encrypt_defaults_off(self) -> None:
        """Test a string without Encrypt connects unencrypted like SqlClient."""
        descriptor = ConnectionDescriptor.parse("Server=db01;Initial Catalog=Sales")

        assert descriptor.odbc_connect(DRIVER).endswith(";Encrypt=no")

    def test_explicit_encrypt_kept(self) -> None:
        """Test an Encrypt setting from the source string is not overridden."""
        descriptor = ConnectionDescriptor.parse(
            "Server=db01;Initial Catalog=Sales;encrypt=True;TrustServerCertificate=True"
        )

        connect = descriptor.odbc_connect(DRIVER)
        assert connect.count("Encrypt=") == 1
        assert "Encrypt=True" in connect

    def test_to_url(self) -> None:
        """Test ADO.NET descriptors become mssql+pyodbc URLs."""
        descriptor = ConnectionDescriptor(database="Sales", server="db01")

        url = descriptor.to_url(DRIVER)

        assert url.drivername == "mssql+pyodbc"
        assert url.query["odbc_connect"] == descriptor.odbc_connect(DRIVER)

    def test_describe_hides_credentials(self) -> None:
        """Test the log label shows server and database only."""
        descriptor = ConnectionDescriptor(database="Sales", user="doc", password="pw")

        assert descriptor.describe() == "(default server)/Sales"
        assert "pw" not in repr(descriptor)

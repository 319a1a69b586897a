"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    RESOLUTION_ERROR = 2
    MIGRATIONS_AVAILABLE = 3


class PolicyKind(Enum):
    """Remote policy documents understood by the loader.

    Args:
        Enum (string): Human-readable name used in diagnostics.
    """

    MIGRATIONS = "ArtifactMigration"
    IGNORES = "UpdateIgnore"
    PINS = "UpdatePin"
    RETRACTIONS = "RetractedArtifact"
    SCALAFIX_MIGRATIONS = "ScalafixMigration"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "DEPSTEWARD_LOG_LEVEL"
    REQUEST_TIMEOUT = 60  # Timeout in seconds for every version lookup
    USER_AGENT = "depsteward/0.1"

    MAVEN_CENTRAL_URL = "https://repo1.maven.org/maven2"
    SBT_PLUGIN_IVY_URL = "https://repo.scala-sbt.org/scalasbt/sbt-plugin-releases"
    MAVEN_METADATA_FILE = "maven-metadata.xml"
    DEFAULT_SCALA_BINARY_VERSION = "2.13"
    SBT_PLUGIN_SCALA_VERSION = "2.12"
    SBT_PLUGIN_SBT_VERSION = "1.0"

    DEFAULT_CONFIGURATION = "compile"
    PLUGIN_CONFIGURATION = "sbt-plugin"

    # Dotted paths of the entry arrays inside each policy document
    POLICY_KEYS = {
        PolicyKind.MIGRATIONS: "changes",
        PolicyKind.IGNORES: "updates.ignore",
        PolicyKind.PINS: "updates.pin",
        PolicyKind.RETRACTIONS: "updates.retracted",
        PolicyKind.SCALAFIX_MIGRATIONS: "migrations",
    }

    # Documents with these extensions are parsed as HOCON, anything else as YAML
    HOCON_EXTENSIONS = (".conf", ".hocon")

    # Upstream Scala Steward policy documents loaded unless settings replace them
    SCALA_STEWARD_RESOURCES_URL = (
        "https://raw.githubusercontent.com/scala-steward-org/scala-steward/main/modules/core/src/main/resources"
    )
    DEFAULT_POLICY_URL = f"{SCALA_STEWARD_RESOURCES_URL}/default.scala-steward.conf"
    DEFAULT_MIGRATIONS_URL = f"{SCALA_STEWARD_RESOURCES_URL}/artifact-migrations.v2.conf"
    DEFAULT_SCALAFIX_MIGRATIONS_URL = f"{SCALA_STEWARD_RESOURCES_URL}/scalafix-migrations.conf"

    SETTINGS_FILE = "settings.yaml"
    SETTINGS_SECTION = "depsteward"
    ENV_TIMEOUT = "DEPSTEWARD_TIMEOUT"
    ENV_PARALLELISM = "DEPSTEWARD_PARALLELISM"
    ENV_REPOSITORIES = "DEPSTEWARD_REPOSITORIES"

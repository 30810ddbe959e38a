"""Configuration management utilities for the chart buffet tools.

Provides reusable pieces for:
- A base configuration object that exports its settings as a dict
- Engine defaults (display count, overflow bucket, filters)
- Environment-driven application settings for the API server
- Constants and known values (entity types, DoD agency markers,
  agency abbreviations)
"""

from pathlib import Path
from typing import Dict, Optional, Any
import os


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}


class BuffetConfig(Config):
    """Engine defaults applied when a caller leaves an option unset.

    There is no default percentage base; callers always choose one.
    """

    def __init__(self):
        """Initialize buffet defaults."""
        super().__init__()
        self.display_count = 10
        self.include_overflow_bucket = True
        self.department_filter = "all"
        self.classification_filter = "all"
        self.year_filter = "all"
        self.generated_by = "chartBuffet"


class KnownValues:
    """Container for known valid values used in filtering and labelling."""

    ENTITY_TYPES = frozenset({"agency", "oem", "vendor"})

    ENTITY_TYPE_NAMES = {
        "agency": "Agency",
        "oem": "OEM",
        "vendor": "Vendor",
    }

    DEPARTMENT_FILTERS = frozenset({"all", "dod", "civilian"})

    # cfoActAgency attribute values
    CLASSIFICATION_FILTERS = frozenset({"all", "Yes", "No"})

    # Upper-case substrings that mark an agency name as DoD
    DOD_AGENCIES = (
        "DEPARTMENT OF DEFENSE",
        "DEPARTMENT OF THE ARMY",
        "DEPARTMENT OF THE NAVY",
        "DEPARTMENT OF THE AIR FORCE",
        "DEFENSE LOGISTICS AGENCY",
        "DEFENSE INFORMATION SYSTEMS AGENCY",
        "DEFENSE HEALTH AGENCY",
        "DEFENSE CONTRACT MANAGEMENT AGENCY",
        "MISSILE DEFENSE AGENCY",
        "NATIONAL SECURITY AGENCY",
        "DEFENSE INTELLIGENCE AGENCY",
        "NATIONAL GEOSPATIAL-INTELLIGENCE AGENCY",
        "DEFENSE ADVANCED RESEARCH PROJECTS AGENCY",
        "DISA",
        "DLA",
        "ARMY",
        "NAVY",
        "AIR FORCE",
        "USAF",
        "USA",
        "USN",
        "DOD",
    )

    # Full upper-case agency name -> short chart label
    AGENCY_ABBREVIATIONS = {
        "VETERANS AFFAIRS, DEPARTMENT OF": "VA",
        "DEFENSE INFORMATION SYSTEMS AGENCY (DISA)": "DISA",
        "CENTERS FOR MEDICARE AND MEDICAID SERVICES": "CMS",
        "DEPT OF THE NAVY": "Navy",
        "DEPT OF THE ARMY": "Army",
        "DEPT OF THE AIR FORCE": "Air Force",
        "STATE, DEPARTMENT OF": "State Dept",
        "INTERNAL REVENUE SERVICE": "IRS",
        "DEFENSE INFORMATION SYSTEMS AGENCY": "DISA",
        "HOMELAND SECURITY, DEPARTMENT OF": "DHS",
        "TREASURY, DEPARTMENT OF THE": "Treasury",
        "HEALTH AND HUMAN SERVICES, DEPARTMENT OF": "HHS",
        "TRANSPORTATION, DEPARTMENT OF": "DOT",
        "EDUCATION, DEPARTMENT OF": "Education",
        "AGRICULTURE, DEPARTMENT OF": "USDA",
        "JUSTICE, DEPARTMENT OF": "DOJ",
        "ENERGY, DEPARTMENT OF": "DOE",
        "COMMERCE, DEPARTMENT OF": "Commerce",
        "LABOR, DEPARTMENT OF": "Labor",
        "HOUSING AND URBAN DEVELOPMENT, DEPARTMENT OF": "HUD",
        "ENVIRONMENTAL PROTECTION AGENCY": "EPA",
        "NATIONAL AERONAUTICS AND SPACE ADMINISTRATION": "NASA",
        "SOCIAL SECURITY ADMINISTRATION": "SSA",
        "U.S. CUSTOMS AND BORDER PROTECTION": "CBP",
        "CUSTOMS AND BORDER PROTECTION": "CBP",
        "IMMIGRATION AND CUSTOMS ENFORCEMENT": "ICE",
        "FEDERAL BUREAU OF INVESTIGATION": "FBI",
        "CENTRAL INTELLIGENCE AGENCY": "CIA",
    }

    @classmethod
    def is_valid_entity_type(cls, entity_type: str) -> bool:
        """Check if entity type is one the buffet can summarize.

        Args:
            entity_type: Entity type string

        Returns:
            True if entity type is known
        """
        return entity_type in cls.ENTITY_TYPES

    @classmethod
    def is_dod_agency(cls, name: Optional[str]) -> bool:
        """Return True if the agency name contains any DoD marker."""
        upper = (name or "").upper()
        return any(marker in upper for marker in cls.DOD_AGENCIES)

    @classmethod
    def get_entity_type_name(cls, entity_type: str) -> str:
        """Singular display name for an entity type ("Agency", "OEM")."""
        return cls.ENTITY_TYPE_NAMES.get(entity_type, entity_type.title())


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have sensible defaults so the application works out of the
    box without any configuration.

    Environment variables:
        APP_DATA_PATH: JSON file with entity records keyed by entity type
            (default: entities.json)
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
    """

    def __init__(self) -> None:
        super().__init__()
        self.data_path = Path(os.getenv("APP_DATA_PATH", "entities.json"))
        self.api_port = int(os.getenv("APP_PORT", "8000"))
        self.api_host = os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()

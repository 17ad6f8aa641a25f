"""Pydantic configuration models for html2md."""

from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


class PropertyDataType(str, Enum):
    """How a front matter value is rendered."""

    TEXT = "text"
    DATE = "date"


class PropertyMatchExpression(BaseModel):
    """Path expression locating a single front matter value."""

    path: str = Field(..., min_length=1, description="CSS selector or tag name evaluated at the document root")
    data_type: PropertyDataType = Field(PropertyDataType.TEXT, description="Render as raw text or as a date")

    model_config = {"extra": "forbid", "frozen": True}


class FrontMatterOptions(BaseModel):
    """Configuration for the metadata preamble."""

    enabled: bool = Field(False, description="Emit a front matter block above the body")
    single_value_properties: dict[str, PropertyMatchExpression] = Field(
        default_factory=dict,
        description="Property name -> expression, rendered in insertion order",
    )

    model_config = {"extra": "forbid", "frozen": True}


class ConversionOptions(BaseModel):
    """
    Per-run conversion settings, shared by every document in a batch.

    Example:
        options = ConversionOptions(
            include_tags=["article"],
            exclude_tags=["div.comments"],
            code_language_class_map={"cl-vb": "vbnet"},
        )
    """

    include_tags: list[str] = Field(
        default_factory=list,
        description="Tag names or selectors to convert (empty = whole body)",
    )
    exclude_tags: list[str] = Field(
        default_factory=list,
        description="Tag names or selectors to skip; always wins over include_tags",
    )
    default_code_language: Optional[str] = Field(
        None,
        description="Fenced code language used when no class maps to one",
    )
    code_language_class_map: dict[str, str] = Field(
        default_factory=dict,
        description="HTML class token -> fenced code language",
    )
    front_matter: FrontMatterOptions = Field(default_factory=FrontMatterOptions)

    model_config = {"extra": "forbid", "frozen": True}


class NetworkConfig(BaseModel):
    """Configuration for the HTTP client and batch concurrency."""

    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    user_agent: Optional[str] = Field(None, description="Custom User-Agent header")
    max_retries: int = Field(3, ge=0, description="Maximum retry attempts for failed requests")
    timeout: int = Field(30, ge=1, description="Request timeout in seconds")
    max_concurrent: int = Field(4, ge=1, description="Documents converted concurrently in a batch")

    model_config = {"extra": "forbid"}


class Html2mdConfig(BaseModel):
    """
    Root configuration model for html2md.

    YAML format:
        conversion:
          include_tags: [article]
          default_code_language: powershell
          front_matter:
            enabled: true
            single_value_properties:
              Title: {path: "body > h1"}
              Date: {path: "time", data_type: date}
        network:
          max_concurrent: 8
    """

    conversion: ConversionOptions = Field(default_factory=ConversionOptions)
    network: NetworkConfig = Field(default_factory=NetworkConfig)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False, sort_keys=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "Html2mdConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "Html2mdConfig":
        """Load config from YAML file."""
        return cls.from_yaml(Path(path).read_text(encoding="utf-8"))

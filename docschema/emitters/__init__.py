"""Emitters projecting the schema and validated records into artifacts."""

from .cms import WIDGETS, build_cms_config, render_cms_config
from .site import build_site_data, render_site_data, site_data_patterns
from .writer import Artifact, EmitterError, write_artifacts

__all__ = [
    "WIDGETS",
    "Artifact",
    "EmitterError",
    "build_cms_config",
    "build_site_data",
    "render_cms_config",
    "render_site_data",
    "site_data_patterns",
    "write_artifacts",
]

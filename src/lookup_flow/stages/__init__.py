"""Enrichment stages - auto-discovered on import."""

from pathlib import Path

from ..core.registry import auto_discover_stages

# Auto-discover all stages in this package
_stages_dir = Path(__file__).parent
_discovered = auto_discover_stages(_stages_dir, __name__)
